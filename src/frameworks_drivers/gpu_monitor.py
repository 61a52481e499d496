"""
Live GPU telemetry acquisition through nvidia-smi.

One acquisition runs the device query, then the compute-apps query, and merges both
into a single snapshot. Only the device query is mandatory.
"""
import logging
import time
from typing import Callable, Optional

from src.entities.gpu_fleet_snapshot import GPUFleetSnapshot
from src.frameworks_drivers.config import GPUConfig
from src.frameworks_drivers.nvidia_smi_locator import NvidiaSmiLocator
from src.frameworks_drivers.tool_invoker import ToolInvoker
from src.shared.errors import GPUAcquisitionError, ToolNotFound
from src.shared.nvidia_smi_parser import ACTIVE_QUERY_ARGS, DEVICE_QUERY_ARGS, NvidiaSmiParser


class GPUMonitor:
    """Service acquiring one GPU fleet snapshot per call."""

    def __init__(self, config: Optional[GPUConfig] = None,
                 locator: Optional[NvidiaSmiLocator] = None,
                 invoker: Optional[ToolInvoker] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.logger = logging.getLogger(__name__)
        self.config = config or GPUConfig()
        self.locator = locator or NvidiaSmiLocator(self.config)
        self.invoker = invoker or ToolInvoker(self.config)
        self.clock = clock

    def acquire(self) -> GPUFleetSnapshot:
        """
        Run a full live acquisition.

        Raises:
            GPUAcquisitionError: The tool is missing, failed, timed out or printed garbage.
        """
        nvidia_smi = self.locator.locate()
        if nvidia_smi is None:
            raise ToolNotFound(self.locator.candidates)

        # Both queries share one deadline, so an acquisition never outlasts the tool timeout
        deadline = self.clock() + self.config.tool_timeout_seconds
        output = self.invoker.invoke(nvidia_smi, DEVICE_QUERY_ARGS, self.config.tool_timeout_seconds)
        snapshot = NvidiaSmiParser.parse(output, clock=self.clock)

        active_uuids = self._query_active_uuids(nvidia_smi, deadline - self.clock())
        snapshot = snapshot.with_active_uuids(active_uuids)

        self.logger.info(
            f"Collected metrics for {snapshot.device_count} GPU(s), {snapshot.active_count} in use"
        )
        return snapshot

    def _query_active_uuids(self, nvidia_smi: str, timeout: float) -> frozenset:
        """Best-effort compute-apps query. Failure means 'unknown', reported as an empty set."""
        if timeout <= 0:
            self.logger.warning("No time left for the compute-apps query, reporting no GPUs in use")
            return frozenset()
        try:
            output = self.invoker.invoke(nvidia_smi, ACTIVE_QUERY_ARGS, timeout)
            return NvidiaSmiParser.parse_active(output)
        except GPUAcquisitionError as e:
            self.logger.warning(f"Failed to query compute apps, reporting no GPUs in use: {e}")
            return frozenset()
