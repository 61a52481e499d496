import logging
import os
import stat
from typing import List, Optional

from src.frameworks_drivers.config import GPUConfig


class NvidiaSmiLocator:
    """Finds the nvidia-smi binary among an ordered list of candidate paths.

    Paths populated by the NVIDIA Container Toolkit come first. Host-mounted binaries
    are a fallback because they may be linked against a different glibc.
    """

    def __init__(self, config: Optional[GPUConfig] = None):
        self.logger = logging.getLogger(__name__)
        config = config or GPUConfig()
        self.candidates: List[str] = list(config.nvidia_smi_paths)

    def locate(self) -> Optional[str]:
        """Return the first executable candidate, or None."""
        for path in self.candidates:
            if self._is_executable_file(path):
                self.logger.debug(f"Found nvidia-smi at {path}")
                return path
        self.logger.warning(f"nvidia-smi not found in any of: {self.candidates}")
        return None

    @staticmethod
    def _is_executable_file(path: str) -> bool:
        try:
            mode = os.stat(path).st_mode
        except OSError:
            return False
        return stat.S_ISREG(mode) and os.access(path, os.X_OK)
