# models.py

"""Data models for the cluster rebalancer."""

from dataclasses import dataclass
from enum import Enum
from typing import List, NamedTuple, Optional


class StorageVolume(NamedTuple):
    """A storage provider reachable from a compute node."""
    name: str
    capacity_gb: float
    free_gb: float


class RawNode(NamedTuple):
    """Compute node as reported by the control plane, before metrics."""
    name: str
    entity_id: str
    vcpus: int
    memory_mb: float
    volumes: List[StorageVolume]


class RawWorkload(NamedTuple):
    """Running server as reported by the control plane, before metrics."""
    name: str
    entity_id: str
    vcpus: int
    memory_mb: float


class ActiveTask(NamedTuple):
    """An in-flight control-plane task."""
    name: str
    state: str
    entity: str


@dataclass
class NodeRecord:
    """Normalized per-cycle view of a compute node."""
    name: str
    cpu_used_pct: float
    mem_used_pct: float
    storage_used_pct: float
    max_free_storage_gb: float
    total_ram_gb: float
    used_ram_gb: float
    total_cpu_mhz: float
    used_cpu_mhz: float
    volume: str
    entity_id: str = ""
    vcpus: int = 0

    @property
    def load_index(self) -> float:
        return self.cpu_used_pct + self.mem_used_pct

    @property
    def free_ram_gb(self) -> float:
        return self.total_ram_gb - self.used_ram_gb


class WorkloadRecord(NamedTuple):
    """Resource footprint of a workload on a source node."""
    name: str
    cpu_load_mhz: float
    mem_usage_kb: float
    configured_mem_gb: float
    used_storage_gb: float
    entity_id: str = ""


class Bottleneck(NamedTuple):
    """Which resource dimensions meet or exceed their threshold."""
    cpu_over: bool
    mem_over: bool
    storage_over: bool

    @property
    def count(self) -> int:
        return sum((self.cpu_over, self.mem_over, self.storage_over))


class Strategy(Enum):
    DISK = "disk-priority"
    CPU = "cpu-priority"
    MEMORY = "memory-priority"
    MULTI = "multi-bottleneck"


class Selection(NamedTuple):
    """Chosen migration candidate and the ranking that produced it."""
    workload: WorkloadRecord
    strategy: Strategy
    reranked: bool = False


class Outcome(Enum):
    DEFERRED_LOCK_HELD = "deferred-lock-held"
    NO_ACTION_NEEDED = "no-action-needed"
    NO_TARGET_AVAILABLE = "no-target-available"
    MIGRATION_INITIATED = "migration-initiated"
    MIGRATION_REJECTED = "migration-rejected"
    NO_ELIGIBLE_MOVE = "no-eligible-move"


@dataclass
class CycleResult:
    """Outcome signal emitted once per cycle."""
    outcome: Outcome
    workload: Optional[str] = None
    source: Optional[str] = None
    target: Optional[str] = None
    volume: Optional[str] = None
    strategy: Optional[Strategy] = None
    projected_target: Optional[NodeRecord] = None

    def __str__(self) -> str:
        if self.workload is None:
            return self.outcome.name
        return (f"{self.outcome.name}{{workload={self.workload}, source={self.source}, "
                f"target={self.target}, volume={self.volume}}}")
