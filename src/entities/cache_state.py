from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .gpu_fleet_snapshot import GPUFleetSnapshot


class CacheStatus(str, Enum):
    NEVER_POPULATED = "never_populated"
    FRESH = "fresh"  # Served from the acquisition that just succeeded
    STALE = "stale"  # Live acquisition failed, stored snapshot still within tolerance
    EXPIRED = "expired"  # Live acquisition failed, stored snapshot too old to serve


class CacheState(BaseModel):
    """
    Outcome of one cache refresh.

    NEVER_POPULATED and EXPIRED both mean "no data" to callers, but only EXPIRED
    implies the GPUs were reachable at some point.
    """
    model_config = ConfigDict(frozen=True)

    status: CacheStatus
    snapshot: Optional[GPUFleetSnapshot] = None
    age_seconds: Optional[float] = None
    error: Optional[str] = None  # Message of the failed acquisition, if any

    @property
    def usable_snapshot(self) -> Optional[GPUFleetSnapshot]:
        if self.status in (CacheStatus.FRESH, CacheStatus.STALE):
            return self.snapshot
        return None

    @property
    def acquisition_failing(self) -> bool:
        return self.status is not CacheStatus.FRESH

    @classmethod
    def never_populated(cls, error: Optional[str] = None) -> "CacheState":
        return cls(status=CacheStatus.NEVER_POPULATED, error=error)

    @classmethod
    def fresh(cls, snapshot: GPUFleetSnapshot) -> "CacheState":
        return cls(status=CacheStatus.FRESH, snapshot=snapshot, age_seconds=0.0)

    @classmethod
    def stale(cls, snapshot: GPUFleetSnapshot, age_seconds: float, error: Optional[str] = None) -> "CacheState":
        return cls(status=CacheStatus.STALE, snapshot=snapshot, age_seconds=age_seconds, error=error)

    @classmethod
    def expired(cls, snapshot: GPUFleetSnapshot, age_seconds: float, error: Optional[str] = None) -> "CacheState":
        return cls(status=CacheStatus.EXPIRED, snapshot=snapshot, age_seconds=age_seconds, error=error)
