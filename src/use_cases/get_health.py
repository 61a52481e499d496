from typing import Any

from src.shared.protocols import PresenceProbeProtocol, SnapshotCacheProtocol
from src.shared.version import APP_VERSION


class GetHealth:
    """Liveness report. Reads cached GPU state only, so it stays fast when nvidia-smi hangs."""

    def __init__(self, presence_probe: PresenceProbeProtocol, snapshot_cache: SnapshotCacheProtocol,
                 version: str = APP_VERSION):
        self.presence_probe = presence_probe
        self.snapshot_cache = snapshot_cache
        self.version = version

    def execute(self) -> dict[str, Any]:
        presence = self.presence_probe.check()
        response: dict[str, Any] = {"status": "healthy", "version": self.version}

        gpu_status: dict[str, Any] = {
            "present": presence.present,
            "reason": presence.reason.value,
        }
        if presence.present:
            state = self.snapshot_cache.peek()
            gpu_status["cache_status"] = state.status.value
            gpu_status["snapshot_age_seconds"] = state.age_seconds
            gpu_status["device_count"] = state.snapshot.device_count if state.snapshot else 0
            gpu_status["last_error"] = state.error

        response["gpu"] = gpu_status
        return response
