from pydantic import BaseModel, Field, computed_field


class CPUFacts(BaseModel):
    """CPU facts reported by the operating system."""
    cores: int = Field(ge=0)  # Physical cores
    threads: int = Field(ge=0)  # Logical CPUs
    model: str = "unknown"
    usage_percent: float = Field(ge=0)

    @computed_field
    @property
    def used_cores(self) -> float:
        """Cores currently in use, as usage share of the logical CPU count."""
        return (self.usage_percent / 100.0) * self.threads


class MemoryFacts(BaseModel):
    """Memory facts in bytes."""
    total_bytes: int = Field(ge=0)
    used_bytes: int = Field(ge=0)
    available_bytes: int = Field(ge=0)

    @computed_field
    @property
    def usage_percent(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return (self.used_bytes / self.total_bytes) * 100.0


class NodeInfo(BaseModel):
    """Descriptive node facts used for the info metric and the /node endpoint."""
    hostname: str = "unknown"
    node: str = "unknown"
    os_name: str = "unknown"
    os_version: str = "unknown"
    kernel_version: str = "unknown"
    uptime_seconds: int = Field(default=0, ge=0)
