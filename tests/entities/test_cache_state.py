"""
Tests for CacheState.
"""
from src.entities.cache_state import CacheState, CacheStatus
from tests.helpers import make_snapshot


class TestCacheState:
    def test_fresh(self):
        snapshot = make_snapshot()
        state = CacheState.fresh(snapshot)

        assert state.status == CacheStatus.FRESH
        assert state.usable_snapshot is snapshot
        assert state.age_seconds == 0.0
        assert state.acquisition_failing is False

    def test_stale_is_usable_but_failing(self):
        snapshot = make_snapshot()
        state = CacheState.stale(snapshot, 42.0, "timed out")

        assert state.usable_snapshot is snapshot
        assert state.acquisition_failing is True
        assert state.error == "timed out"

    def test_expired_keeps_snapshot_but_is_not_usable(self):
        snapshot = make_snapshot()
        state = CacheState.expired(snapshot, 301.0)

        assert state.snapshot is snapshot
        assert state.usable_snapshot is None
        assert state.acquisition_failing is True

    def test_never_populated(self):
        state = CacheState.never_populated("nvidia-smi not found")

        assert state.snapshot is None
        assert state.usable_snapshot is None
        assert state.age_seconds is None
        assert state.acquisition_failing is True

    def test_status_serializes_as_string(self):
        assert CacheState.never_populated().model_dump(mode="json")["status"] == "never_populated"
