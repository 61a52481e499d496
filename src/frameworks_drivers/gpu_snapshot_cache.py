"""
Staleness-bounded cache of the last good GPU fleet snapshot.
"""
import threading
import time
from typing import Callable, Optional

from src.entities.cache_state import CacheState, CacheStatus
from src.entities.gpu_fleet_snapshot import GPUFleetSnapshot
from src.frameworks_drivers.gpu_monitor import GPUMonitor
from src.shared.errors import GPUAcquisitionError
from src.shared.logger import Logger

logger = Logger.get(__name__)


class GPUSnapshotCache:
    """
    Serves a live snapshot when acquisition works and the last good one while it is
    young enough when it does not.

    One instance is shared by all request handlers. The stored snapshot is a single
    immutable object, replaced under a lock, so readers see either the old or the
    new snapshot and never a mixture. Acquisition itself runs outside the lock, which
    keeps concurrent scrapes from queueing behind a hung tool.
    """

    def __init__(self, monitor: GPUMonitor, max_age_seconds: float = 300.0,
                 clock: Callable[[], float] = time.monotonic):
        self.monitor = monitor
        self.max_age_seconds = max_age_seconds
        self.clock = clock
        self._lock = threading.Lock()
        self._snapshot: Optional[GPUFleetSnapshot] = None
        self._last_state = CacheState.never_populated()
        self._last_started = float("-inf")  # Start time of the attempt that produced _last_state

    def get_snapshot(self) -> Optional[GPUFleetSnapshot]:
        """Attempt a live acquisition and return the live or still-valid cached snapshot."""
        return self.refresh().usable_snapshot

    def refresh(self) -> CacheState:
        """Attempt one live acquisition and report what was served. Never raises acquisition errors."""
        started = self.clock()
        try:
            snapshot = self.monitor.acquire()
        except GPUAcquisitionError as e:
            logger.warning(f"Failed to get GPU metrics from nvidia-smi, using cached data: {e}")
            with self._lock:
                state = self._fallback(str(e))
                self._record(state, started)
        else:
            with self._lock:
                state = CacheState.fresh(self._publish(snapshot))
                self._record(state, started)
        return state

    def peek(self) -> CacheState:
        """Classify the stored snapshot by age without attempting an acquisition."""
        with self._lock:
            snapshot = self._snapshot
            last_state = self._last_state
        if snapshot is None:
            return CacheState.never_populated(last_state.error)
        age = snapshot.age(self.clock())
        if last_state.status is CacheStatus.FRESH and last_state.snapshot is snapshot:
            status = CacheStatus.FRESH if age <= self.max_age_seconds else CacheStatus.EXPIRED
        else:
            status = CacheStatus.STALE if age <= self.max_age_seconds else CacheStatus.EXPIRED
        return CacheState(status=status, snapshot=snapshot, age_seconds=age, error=last_state.error)

    @property
    def last_state(self) -> CacheState:
        """State of the most recently started refresh that has finished."""
        with self._lock:
            return self._last_state

    # The helpers below expect the caller to hold self._lock.

    def _record(self, state: CacheState, started: float) -> None:
        # An attempt that began before the recorded one must not replace its outcome
        if started >= self._last_started:
            self._last_state = state
            self._last_started = started

    def _publish(self, snapshot: GPUFleetSnapshot) -> GPUFleetSnapshot:
        current = self._snapshot
        # A slower acquisition must not overwrite one captured after it
        if current is not None and current.captured_at > snapshot.captured_at:
            return current
        self._snapshot = snapshot
        return snapshot

    def _fallback(self, error: str) -> CacheState:
        snapshot = self._snapshot

        if snapshot is None:
            logger.warning("No cached GPU data available")
            return CacheState.never_populated(error)

        age = snapshot.age(self.clock())
        if age > self.max_age_seconds:
            logger.warning(
                f"Cached GPU data expired ({age:.0f}s old, max {self.max_age_seconds:.0f}s), reporting no data"
            )
            return CacheState.expired(snapshot, age, error)

        logger.info(f"Using cached GPU data ({age:.0f}s old) for {snapshot.device_count} GPU(s)")
        return CacheState.stale(snapshot, age, error)
