from typing import Optional, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from src.entities.cache_state import CacheState
    from src.entities.gpu_fleet_snapshot import GPUFleetSnapshot
    from src.entities.hardware_presence import HardwarePresenceResult
    from src.entities.node_facts import CPUFacts, MemoryFacts, NodeInfo


class SystemFactsProtocol(Protocol):
    def cpu(self) -> 'CPUFacts': ...

    def memory(self) -> 'MemoryFacts': ...

    def node_info(self) -> 'NodeInfo': ...


class PresenceProbeProtocol(Protocol):
    def check(self) -> 'HardwarePresenceResult': ...

    def probe(self) -> bool: ...


class SnapshotCacheProtocol(Protocol):
    def refresh(self) -> 'CacheState': ...

    def peek(self) -> 'CacheState': ...

    def get_snapshot(self) -> Optional['GPUFleetSnapshot']: ...
