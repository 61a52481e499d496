import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, model_validator

from src.shared.logger import Logger

logger = Logger.get(__name__)

ENV_PREFIX = "HW_EXPORTER__"


class ServerConfig(BaseModel):
    """Configuration for the HTTP server.

    Attributes:
        host: Host to bind.
        port: Port to bind.
    """

    host: str = Field("0.0.0.0", description="Host for the exporter server")
    port: int = Field(8080, ge=1, le=65535, description="Port for the exporter server")


class GPUConfig(BaseModel):
    """Configuration for GPU telemetry acquisition.

    Attributes:
        enabled: Whether GPU telemetry is collected at all.
        tool_timeout_seconds: Hard wall-clock bound on each nvidia-smi invocation.
        cache_max_age_seconds: Maximum age of a cached snapshot served after a failed acquisition.
        presence_paths: Paths whose existence means the NVIDIA driver is loaded.
        nvidia_smi_paths: Candidate nvidia-smi locations, in order of preference.
        host_path_prefix: Prefix of binaries mounted from the host.
        host_library_path: LD_LIBRARY_PATH used when running a host-mounted binary.
    """

    enabled: bool = Field(True, description="Whether GPU telemetry is collected")
    tool_timeout_seconds: float = Field(5.0, gt=0, description="Timeout for nvidia-smi execution in seconds")
    cache_max_age_seconds: float = Field(300.0, gt=0, description="Maximum age of cached GPU data in seconds")
    presence_paths: List[str] = Field(
        default_factory=lambda: [
            "/host/proc/driver/nvidia/version",
            "/proc/driver/nvidia/version",
            "/dev/nvidiactl",
        ],
        description="Indicator paths that exist only when the NVIDIA driver is loaded",
    )
    nvidia_smi_paths: List[str] = Field(
        default_factory=lambda: [
            "/usr/bin/nvidia-smi",  # Injected by NVIDIA Container Toolkit
            "/usr/local/bin/nvidia-smi",
            "/host/usr/bin/nvidia-smi",  # Host-mounted, may not match the container's glibc
        ],
        description="Candidate nvidia-smi paths, container-injected locations first",
    )
    host_path_prefix: str = Field("/host/", description="Prefix of binaries mounted from the host")
    host_library_path: str = Field(
        "/host/nvidia-libs:/usr/lib/x86_64-linux-gnu:/usr/lib",
        description="LD_LIBRARY_PATH for host-mounted nvidia-smi",
    )

    @model_validator(mode="after")
    def _check_window(self) -> "GPUConfig":
        if self.cache_max_age_seconds <= self.tool_timeout_seconds:
            raise ValueError("cache_max_age_seconds must be greater than tool_timeout_seconds")
        return self


class MetricsEnabled(BaseModel):
    """Switches for each exported metric family."""

    node_info: bool = True
    node_uptime: bool = True
    cpu_cores: bool = True
    cpu_threads: bool = True
    cpu_usage: bool = True
    cpu_used_cores: bool = True
    memory_total: bool = True
    memory_used: bool = True
    memory_available: bool = True
    memory_usage: bool = True
    gpu_count: bool = True
    gpu_used_count: bool = True
    gpu_type_count: bool = True
    gpu_memory_total: bool = True
    gpu_memory_used: bool = True
    gpu_memory_free: bool = True
    gpu_utilization: bool = True
    gpu_temperature: bool = True
    gpu_power_draw: bool = True
    gpu_power_limit: bool = True
    gpu_acquisition_status: bool = True


class MetricsConfig(BaseModel):
    """Configuration for metric exposition.

    Attributes:
        enabled: Per-family metric switches.
    """

    enabled: MetricsEnabled = Field(default_factory=MetricsEnabled, description="Per-family metric switches")


class NodeConfig(BaseModel):
    """Configuration for node facts.

    Attributes:
        host_os_release_path: os-release file mounted from the host.
        node_name_env: Environment variable holding the node name.
    """

    host_os_release_path: str = Field("/host/etc/os-release", description="Host os-release file")
    node_name_env: str = Field("NODE_NAME", description="Environment variable holding the node name")


class Config(BaseModel):
    """Main configuration class.

    Attributes:
        server: HTTP server settings.
        gpu: GPU telemetry settings.
        metrics: Metric exposition settings.
        node: Node facts settings.
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    gpu: GPUConfig = Field(default_factory=GPUConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    node: NodeConfig = Field(default_factory=NodeConfig)

    @classmethod
    def load(cls, config_path: str = "config.json", required: bool = False,
             environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Load configuration from a JSON file, apply environment overrides, and validate.

        A missing file is an error only when ``required`` is set; otherwise defaults are used.
        """
        path = Path(config_path)
        data: Dict[str, Any] = {}
        if path.exists():
            with open(path) as f:
                data = json.load(f)
        elif required:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        else:
            logger.info(f"Configuration file {config_path} not found, using defaults")

        apply_env_overrides(data, os.environ if environ is None else environ)
        return cls(**data)


def apply_env_overrides(data: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    """Merge ``HW_EXPORTER__SECTION__KEY=value`` variables into ``data`` in place.

    Values are decoded as JSON when possible, so numbers, booleans and lists work.
    """
    for name, raw in environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        keys = [key.lower() for key in name[len(ENV_PREFIX):].split("__") if key]
        if not keys:
            continue
        try:
            value: Any = json.loads(raw)
        except json.JSONDecodeError:
            value = raw
        target = data
        for key in keys[:-1]:
            node = target.get(key)
            if not isinstance(node, dict):
                node = {}
                target[key] = node
            target = node
        target[keys[-1]] = value
    return data
