"""
Operating-system facts (CPU, memory, node identity) gathered with psutil.
"""
import os
import platform
import socket
import time
from typing import Mapping, Optional, Tuple

import psutil

from src.entities.node_facts import CPUFacts, MemoryFacts, NodeInfo
from src.frameworks_drivers.config import NodeConfig
from src.shared.logger import Logger

logger = Logger.get(__name__)


class SystemFactsProvider:
    """Synchronous, local OS facts. Assumed fast and reliable."""

    def __init__(self, config: Optional[NodeConfig] = None, environ: Optional[Mapping[str, str]] = None):
        self.config = config or NodeConfig()
        self.environ = os.environ if environ is None else environ
        # Prime the counters: psutil reports usage as the delta since the previous call
        psutil.cpu_percent(interval=None)

    def cpu(self) -> CPUFacts:
        return CPUFacts(
            cores=psutil.cpu_count(logical=False) or 0,
            threads=psutil.cpu_count(logical=True) or 0,
            model=self._cpu_model(),
            usage_percent=psutil.cpu_percent(interval=None),
        )

    def memory(self) -> MemoryFacts:
        memory = psutil.virtual_memory()
        return MemoryFacts(
            total_bytes=memory.total,
            used_bytes=memory.used,
            available_bytes=memory.available,
        )

    def node_info(self) -> NodeInfo:
        hostname = socket.gethostname() or "unknown"
        os_name, os_version = self.host_os_info()
        return NodeInfo(
            hostname=hostname,
            node=self.environ.get(self.config.node_name_env) or hostname,
            os_name=os_name,
            os_version=os_version,
            kernel_version=platform.release() or "unknown",
            uptime_seconds=max(0, int(time.time() - psutil.boot_time())),
        )

    def host_os_info(self) -> Tuple[str, str]:
        """OS name and version from the host-mounted os-release, else from this container."""
        parsed = parse_os_release(self.config.host_os_release_path)
        if parsed is not None:
            return parsed
        return platform.system() or "unknown", platform.version() or "unknown"

    @staticmethod
    def _cpu_model() -> str:
        try:
            with open("/proc/cpuinfo") as f:
                for line in f:
                    if line.startswith("model name"):
                        return line.split(":", 1)[1].strip()
        except OSError:
            pass
        return platform.processor() or "unknown"


def parse_os_release(path: str) -> Optional[Tuple[str, str]]:
    """Read NAME and VERSION_ID from an os-release file. None if either is missing."""
    try:
        with open(path) as f:
            content = f.read()
    except OSError:
        return None

    name = None
    version = None
    for line in content.splitlines():
        line = line.strip()
        if line.startswith("NAME="):
            name = line[len("NAME="):].strip('"')
        elif line.startswith("VERSION_ID="):
            version = line[len("VERSION_ID="):].strip('"')
        if name is not None and version is not None:
            break

    if name is None or version is None:
        logger.debug(f"Incomplete os-release data in {path}")
        return None
    return name, version
