"""
Shared builders and process helpers for tests.
"""
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from src.entities.gpu import GPUDeviceRecord
from src.entities.gpu_fleet_snapshot import GPUFleetSnapshot

MIB = 1024 * 1024


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_device(index: int = 0, name: str = "NVIDIA A100-SXM4-80GB", uuid: Optional[str] = None,
                total_mib: int = 81920, used_mib: int = 1024, **overrides) -> GPUDeviceRecord:
    values = dict(
        index=index,
        name=name,
        uuid=uuid or f"GPU-test-{index:04d}",
        memory_total_bytes=total_mib * MIB,
        memory_used_bytes=used_mib * MIB,
        memory_free_bytes=(total_mib - used_mib) * MIB,
        utilization_percent=10.0,
        temperature_celsius=40,
        power_draw_watts=100.0,
        power_limit_watts=400.0,
    )
    values.update(overrides)
    return GPUDeviceRecord(**values)


def make_snapshot(devices: Optional[List[GPUDeviceRecord]] = None, active_uuids=(),
                  captured_at: float = 1000.0) -> GPUFleetSnapshot:
    return GPUFleetSnapshot(
        devices=tuple(devices if devices is not None else [make_device(0), make_device(1)]),
        active_uuids=frozenset(active_uuids),
        captured_at=captured_at,
        timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def pid_is_running(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def read_pid(path: Path) -> int:
    return int(path.read_text().strip())
