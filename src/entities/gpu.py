from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GPUDeviceRecord(BaseModel):
    """One physical GPU as reported by a single nvidia-smi device query."""
    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)  # Ordinal index, stable within one invocation only
    name: str  # GPU name/model
    uuid: str  # Vendor-assigned unique identifier
    memory_total_bytes: int = Field(ge=0)
    memory_used_bytes: int = Field(ge=0)
    memory_free_bytes: int = Field(ge=0)
    utilization_percent: Optional[float] = Field(default=None, ge=0, le=100)
    temperature_celsius: Optional[int] = None
    power_draw_watts: Optional[float] = None
    power_limit_watts: Optional[float] = None
