"""
GPU presence detection based on NVIDIA driver interfaces.

The probe only stats a few well-known paths, so it is cheap enough to run on every
scrape and it never loads NVML or spawns a process.
"""
import logging
import os
from typing import List, Optional

from src.entities.hardware_presence import HardwarePresenceResult, PresenceReason
from src.frameworks_drivers.config import GPUConfig


class GPUDetector:
    """Decides whether NVIDIA GPU driver infrastructure is reachable from this process."""

    def __init__(self, config: Optional[GPUConfig] = None):
        self.logger = logging.getLogger(__name__)
        config = config or GPUConfig()
        self.enabled = config.enabled
        self.indicator_paths: List[str] = list(config.presence_paths)

    def check(self) -> HardwarePresenceResult:
        """Probe every indicator path and report the first one found."""
        if not self.enabled:
            return HardwarePresenceResult(present=False, reason=PresenceReason.PROBE_DISABLED)

        for path in self.indicator_paths:
            if self._indicator_exists(path):
                self.logger.debug(f"NVIDIA GPU driver detected at {path}")
                return HardwarePresenceResult(
                    present=True,
                    reason=PresenceReason.DRIVER_INTERFACE_PRESENT,
                    indicator=path,
                )

        self.logger.debug("No NVIDIA GPU driver interface found, skipping GPU metrics collection")
        return HardwarePresenceResult(present=False, reason=PresenceReason.DRIVER_INTERFACE_ABSENT)

    def probe(self) -> bool:
        """Check if GPU hardware is present."""
        return self.check().present

    def _indicator_exists(self, path: str) -> bool:
        try:
            os.stat(path)
        except OSError:
            # Missing, unreadable or otherwise broken indicators count as absent
            return False
        return True
