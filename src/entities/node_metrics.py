from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .cache_state import CacheStatus
from .gpu import GPUDeviceRecord
from .node_facts import CPUFacts, MemoryFacts, NodeInfo


class GPUSummary(BaseModel):
    """GPU part of a node report. Absent entirely when the node has no GPU driver."""
    count: int
    used_count: int
    type_counts: Dict[str, int] = Field(default_factory=dict)
    devices: List[GPUDeviceRecord] = Field(default_factory=list)
    cache_status: CacheStatus
    snapshot_age_seconds: Optional[float] = None
    acquisition_failing: bool

    @property
    def snapshot_served(self) -> bool:
        return self.cache_status in (CacheStatus.FRESH, CacheStatus.STALE)


class NodeMetrics(BaseModel):
    """Everything collected for one scrape, before it is turned into metric samples."""
    node: NodeInfo
    cpu: CPUFacts
    memory: MemoryFacts
    gpu: Optional[GPUSummary] = None
