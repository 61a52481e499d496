from enum import Enum
from typing import Optional

from pydantic import BaseModel


class PresenceReason(str, Enum):
    DRIVER_INTERFACE_PRESENT = "driver_interface_present"
    DRIVER_INTERFACE_ABSENT = "driver_interface_absent"
    PROBE_DISABLED = "probe_disabled"


class HardwarePresenceResult(BaseModel):
    """Result of one GPU presence probe. Never cached, reason is for logging only."""
    present: bool
    reason: PresenceReason
    indicator: Optional[str] = None  # Indicator path that matched, if any
