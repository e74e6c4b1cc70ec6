# planner.py

"""Single-migration rebalancing cycle."""

import logging
from typing import List, Optional

from .admission import find_target, projected_cpu_pct, reserve
from .classifier import classify, is_source, is_target, select_strategy
from .config import BalancerConfig, IN_FLIGHT_TASK_STATES
from .exceptions import MigrationError, TelemetryError
from .interfaces import ClusterTelemetrySource, RelocationExecutor, TaskQueueInspector
from .metrics import build_node_records, build_workload_records
from .models import ActiveTask, CycleResult, NodeRecord, Outcome
from .selector import select_candidate

logger = logging.getLogger(__name__)


class RebalancePlanner:
    """
    Runs one decision cycle: lock check, collection, classification, then
    candidate and target selection per overloaded node, most loaded first.

    At most one relocation is handed to the executor per cycle.
    """

    def __init__(self, telemetry: ClusterTelemetrySource, tasks: TaskQueueInspector,
                 executor: RelocationExecutor, config: BalancerConfig):
        self.telemetry = telemetry
        self.tasks = tasks
        self.executor = executor
        self.config = config
        self.targets: List[NodeRecord] = []

    def in_flight_tasks(self) -> List[ActiveTask]:
        """Relocation tasks currently queued or running cluster-wide."""
        tasks = self.tasks.list_active_tasks(self.config.lock_task_pattern)
        return [
            task for task in tasks
            if task.state.lower() in IN_FLIGHT_TASK_STATES
            and self.config.lock_regex.search(task.name)
        ]

    def partition(self, nodes: List[NodeRecord]):
        """Split nodes into sources (load desc) and targets (load asc)."""
        thresholds = self.config.thresholds
        sources = sorted(
            (n for n in nodes if is_source(n, thresholds)),
            key=lambda n: n.load_index, reverse=True
        )
        targets = sorted(
            (n for n in nodes if is_target(n, thresholds)),
            key=lambda n: n.load_index
        )
        return sources, targets

    def run_cycle(self) -> CycleResult:
        """
        Evaluate one rebalancing opportunity.

        Raises:
            TelemetryError: the control plane cannot be reached at cycle start.
        """
        in_flight = self.in_flight_tasks()
        if in_flight:
            for task in in_flight:
                logger.info(f"In-flight task {task.name} ({task.state}) on {task.entity}")
            return self._finish(CycleResult(Outcome.DEFERRED_LOCK_HELD))

        nodes = build_node_records(self.telemetry, self.config)
        sources, self.targets = self.partition(nodes)

        logger.info(f"Collected {len(nodes)} node(s): {len(sources)} overloaded, "
                    f"{len(self.targets)} with headroom")

        if not sources:
            return self._finish(CycleResult(Outcome.NO_ACTION_NEEDED))
        if not self.targets:
            return self._finish(CycleResult(Outcome.NO_TARGET_AVAILABLE))

        for source in sources:
            result = self.evaluate_source(source)
            if result is not None:
                return self._finish(result)

        return self._finish(CycleResult(Outcome.NO_ELIGIBLE_MOVE))

    def evaluate_source(self, source: NodeRecord) -> Optional[CycleResult]:
        """Select a workload and target for one source node.

        Returns None when the node yields no candidate or no target.
        """
        bottleneck = classify(source, self.config.thresholds)
        strategy = select_strategy(bottleneck)
        logger.info(
            f"Analyzing {source.name} (load index {source.load_index:.1f}): "
            f"CPU {source.cpu_used_pct:.1f}%, RAM {source.mem_used_pct:.1f}%, "
            f"storage {source.storage_used_pct:.1f}%, strategy {strategy.value}"
        )

        try:
            workloads = build_workload_records(self.telemetry, source, self.config)
        except TelemetryError as e:
            logger.error(f"Error getting workloads for node {source.name}: {e}")
            return None

        selection = select_candidate(workloads, strategy)
        if selection is None:
            logger.info(f"No eligible workload on {source.name}")
            return None

        candidate = selection.workload
        logger.info(
            f"Candidate {candidate.name}: {candidate.cpu_load_mhz:.0f} MHz, "
            f"{candidate.configured_mem_gb:.1f} GB configured, "
            f"{candidate.used_storage_gb:.1f} GB disk"
            + (" (memory re-rank)" if selection.reranked else "")
        )

        target = find_target(candidate, self.targets, self.config.thresholds, exclude=source.name)
        if target is None:
            logger.info(f"No target can accept {candidate.name} from {source.name}")
            return None

        logger.debug(f"  Target CPU after move: {projected_cpu_pct(candidate, target):.1f}%")

        # Target counters are reserved before the handoff.
        projected = reserve(target, candidate)
        self.targets = [projected if n.name == target.name else n for n in self.targets]

        result = CycleResult(
            outcome=Outcome.MIGRATION_INITIATED,
            workload=candidate.name,
            source=source.name,
            target=target.name,
            volume=target.volume,
            strategy=strategy,
            projected_target=projected,
        )

        try:
            accepted = self.executor.relocate(candidate, target.name, target.volume)
        except MigrationError as e:
            logger.error(f"Relocation failed: {e}")
            accepted = False

        if not accepted:
            result.outcome = Outcome.MIGRATION_REJECTED
        return result

    def _finish(self, result: CycleResult) -> CycleResult:
        if result.outcome is Outcome.MIGRATION_REJECTED:
            logger.warning(f"Cycle outcome: {result}")
        else:
            logger.info(f"Cycle outcome: {result}")
        return result


def describe_nodes(nodes: List[NodeRecord], config: BalancerConfig) -> None:
    """Log each node's usage and its classification."""
    for node in sorted(nodes, key=lambda n: n.load_index, reverse=True):
        bottleneck = classify(node, config.thresholds)
        role = "source" if bottleneck.count else ("target" if is_target(node, config.thresholds) else "-")
        logger.info(f"Node {node.name} [{role}]")
        logger.info(f"  CPU:     {node.cpu_used_pct:.1f}% "
                    f"({node.used_cpu_mhz:.0f}/{node.total_cpu_mhz:.0f} MHz)")
        logger.info(f"  Memory:  {node.mem_used_pct:.1f}% "
                    f"({node.used_ram_gb:.1f}/{node.total_ram_gb:.1f} GB)")
        logger.info(f"  Storage: {node.storage_used_pct:.1f}% on {node.volume} "
                    f"({node.max_free_storage_gb:.1f} GB free)")
        logger.info(f"  Load index: {node.load_index:.1f}")
