# interfaces.py

"""Collaborator interfaces consumed by the rebalancing engine."""

from typing import Callable, List, Optional, Protocol

from .models import ActiveTask, RawNode, RawWorkload, WorkloadRecord

NodeFilter = Callable[[RawNode], bool]
WorkloadFilter = Callable[[RawWorkload], bool]


class ClusterTelemetrySource(Protocol):
    """Enumerates nodes and workloads and serves averaged metrics.

    Implementations raise TelemetryError when the backend is unreachable.
    """

    def list_nodes(self, node_filter: Optional[NodeFilter] = None) -> List[RawNode]:
        ...

    def list_workloads(self, node_name: str,
                       workload_filter: Optional[WorkloadFilter] = None) -> List[RawWorkload]:
        ...

    def get_averaged_metric(self, entity_id: str, metric: str,
                            window_seconds: int) -> Optional[float]:
        """Mean of ``metric`` over the last ``window_seconds``, or None."""
        ...


class TaskQueueInspector(Protocol):

    def list_active_tasks(self, name_pattern: str) -> List[ActiveTask]:
        ...


class RelocationExecutor(Protocol):

    def relocate(self, workload: WorkloadRecord, destination_node: str,
                 destination_volume: str) -> bool:
        """Submit a relocation; True if the control plane accepted it."""
        ...
