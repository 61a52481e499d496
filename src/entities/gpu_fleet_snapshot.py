from datetime import datetime
from typing import Dict, FrozenSet, Tuple

from pydantic import BaseModel, ConfigDict

from .gpu import GPUDeviceRecord


class GPUFleetSnapshot(BaseModel):
    """
    One complete, internally consistent batch of GPU records captured at a single instant.

    Snapshots are immutable. The cache replaces a snapshot with a newer one and never
    edits one in place.
    """
    model_config = ConfigDict(frozen=True)

    devices: Tuple[GPUDeviceRecord, ...] = ()  # In tool output order
    active_uuids: FrozenSet[str] = frozenset()  # Devices running at least one compute workload
    captured_at: float  # Monotonic clock reading, only meaningful for computing age
    timestamp: datetime  # Wall-clock capture time, for display

    @property
    def device_count(self) -> int:
        return len(self.devices)

    @property
    def device_uuids(self) -> FrozenSet[str]:
        return frozenset(device.uuid for device in self.devices)

    @property
    def active_count(self) -> int:
        """Number of present devices that also appear in the active-workload set."""
        return len(self.device_uuids & self.active_uuids)

    @property
    def type_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for device in self.devices:
            counts[device.name] = counts.get(device.name, 0) + 1
        return counts

    def age(self, now: float) -> float:
        """Seconds elapsed since capture, measured on the same monotonic clock."""
        return max(0.0, now - self.captured_at)

    def with_active_uuids(self, active_uuids: FrozenSet[str]) -> "GPUFleetSnapshot":
        return self.model_copy(update={"active_uuids": frozenset(active_uuids)})
