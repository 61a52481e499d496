"""
Parsing of nvidia-smi CSV query output into typed GPU records.

Unit normalization happens here: memory arrives in MiB and leaves as bytes, so
everything cached or exported downstream is byte-denominated.
"""
import time
from datetime import datetime, timezone
from typing import Callable, FrozenSet, List, Optional

from pydantic import ValidationError

from src.entities.gpu import GPUDeviceRecord
from src.entities.gpu_fleet_snapshot import GPUFleetSnapshot
from src.shared.errors import TelemetryParseError

MIB = 1024 * 1024

DEVICE_QUERY_FIELDS = [
    "index",
    "name",
    "uuid",
    "memory.total",
    "memory.used",
    "memory.free",
    "utilization.gpu",
    "temperature.gpu",
    "power.draw",
    "power.limit",
]

DEVICE_QUERY_ARGS = [
    f"--query-gpu={','.join(DEVICE_QUERY_FIELDS)}",
    "--format=csv,noheader,nounits",
]

ACTIVE_QUERY_ARGS = [
    "--query-compute-apps=gpu_uuid",
    "--format=csv,noheader",
]

# Values nvidia-smi prints when a sensor or counter is not exposed by the device
NOT_AVAILABLE = {"[N/A]", "N/A", "[Not Supported]", "Not Supported", "[Unknown Error]"}


class NvidiaSmiParser:
    """Converts raw nvidia-smi output into snapshots. All-or-nothing per batch."""

    DELIMITER = ","

    @staticmethod
    def parse(raw_output: str, clock: Callable[[], float] = time.monotonic,
              now: Optional[datetime] = None) -> GPUFleetSnapshot:
        """
        Parse device-listing output into a snapshot.

        Args:
            raw_output: Output of the device query, one line per GPU.
            clock: Monotonic clock used to stamp the capture instant.
            now: Wall-clock capture time, defaults to the current UTC time.

        Returns:
            A snapshot with one record per non-blank line. Blank output gives an empty snapshot.

        Raises:
            TelemetryParseError: Any line is malformed. No partial snapshot is built.
        """
        devices: List[GPUDeviceRecord] = []
        for line in raw_output.splitlines():
            line = line.strip()
            if not line:
                continue
            devices.append(NvidiaSmiParser._parse_device_line(line))

        return GPUFleetSnapshot(
            devices=tuple(devices),
            captured_at=clock(),
            timestamp=now or datetime.now(timezone.utc),
        )

    @staticmethod
    def parse_active(raw_output: str) -> FrozenSet[str]:
        """Parse active compute-app output into the set of GPU uuids running a workload."""
        uuids = set()
        for line in raw_output.splitlines():
            line = line.strip()
            if not line:
                continue
            if NvidiaSmiParser.DELIMITER in line or len(line.split()) != 1:
                raise TelemetryParseError("Unexpected compute-apps line", line)
            uuids.add(line)
        return frozenset(uuids)

    @staticmethod
    def _parse_device_line(line: str) -> GPUDeviceRecord:
        fields = [field.strip() for field in line.split(NvidiaSmiParser.DELIMITER)]
        if len(fields) != len(DEVICE_QUERY_FIELDS):
            raise TelemetryParseError(
                f"Expected {len(DEVICE_QUERY_FIELDS)} fields, got {len(fields)}", line
            )

        index, name, uuid, mem_total, mem_used, mem_free, util, temp, power_draw, power_limit = fields
        if not name or not uuid:
            raise TelemetryParseError("Empty GPU name or uuid", line)

        try:
            return GPUDeviceRecord(
                index=_parse_int(index, line),
                name=name,
                uuid=uuid,
                memory_total_bytes=_parse_mib(mem_total, line),
                memory_used_bytes=_parse_mib(mem_used, line),
                memory_free_bytes=_parse_mib(mem_free, line),
                utilization_percent=_parse_optional_float(util, line, "%"),
                temperature_celsius=_parse_optional_int(temp, line),
                power_draw_watts=_parse_optional_float(power_draw, line, "W"),
                power_limit_watts=_parse_optional_float(power_limit, line, "W"),
            )
        except ValidationError as e:
            raise TelemetryParseError(f"Out-of-range value ({e.error_count()} errors)", line) from e


def _strip_unit(value: str, unit: str) -> str:
    if unit and value.endswith(unit):
        return value[: -len(unit)].strip()
    return value


def _parse_int(value: str, line: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise TelemetryParseError(f"Non-integer value {value!r}", line) from None


def _parse_mib(value: str, line: str) -> int:
    value = _strip_unit(_strip_unit(value, "MiB"), "MB")
    return _parse_int(value, line) * MIB


def _parse_optional_int(value: str, line: str) -> Optional[int]:
    if value in NOT_AVAILABLE:
        return None
    return _parse_int(_strip_unit(value, "C"), line)


def _parse_optional_float(value: str, line: str, unit: str) -> Optional[float]:
    if value in NOT_AVAILABLE:
        return None
    value = _strip_unit(value, unit)
    try:
        return float(value)
    except ValueError:
        raise TelemetryParseError(f"Non-numeric value {value!r}", line) from None
