# selector.py

"""Migration candidate selection on an overloaded node."""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from .config import CPU_LOW_SIGNAL_FLOOR_MHZ
from .models import Selection, Strategy, WorkloadRecord

logger = logging.getLogger(__name__)

# Sort keys per strategy, all descending.
RANKING_KEYS: Dict[Strategy, Callable[[WorkloadRecord], Tuple[float, ...]]] = {
    Strategy.DISK: lambda w: (w.used_storage_gb, w.configured_mem_gb, w.cpu_load_mhz),
    Strategy.CPU: lambda w: (w.cpu_load_mhz, w.mem_usage_kb),
    Strategy.MEMORY: lambda w: (w.configured_mem_gb, w.mem_usage_kb, w.cpu_load_mhz),
    Strategy.MULTI: lambda w: (w.cpu_load_mhz, w.configured_mem_gb, w.used_storage_gb),
}


def has_signal(workload: WorkloadRecord) -> bool:
    """False when CPU, memory usage and disk usage are all at or below zero."""
    return (workload.cpu_load_mhz > 0 or
            workload.mem_usage_kb > 0 or
            workload.used_storage_gb > 0)


def rank_workloads(workloads: List[WorkloadRecord], strategy: Strategy) -> List[WorkloadRecord]:
    """Order workloads best-candidate-first for ``strategy``.

    The sort is stable, so workloads with equal keys keep their input order.
    """
    return sorted(workloads, key=RANKING_KEYS[strategy], reverse=True)


def select_candidate(workloads: List[WorkloadRecord],
                     strategy: Strategy) -> Optional[Selection]:
    """
    Pick the workload to relocate from an overloaded node.

    When CPU is the only bottleneck and the busiest workload is below the
    low-signal floor, the CPU ranking is discarded and the memory ranking
    is used instead. Memory and disk rankings are never re-ranked.

    Returns:
        Selection, or None if no workload has usable metrics.
    """
    usable = [w for w in workloads if has_signal(w)]
    dropped = len(workloads) - len(usable)
    if dropped:
        logger.debug(f"Dropped {dropped} workload(s) without usable metrics")
    if not usable:
        return None

    ranked = rank_workloads(usable, strategy)
    top = ranked[0]

    if strategy is Strategy.CPU and top.cpu_load_mhz < CPU_LOW_SIGNAL_FLOOR_MHZ:
        logger.info(
            f"Top CPU candidate {top.name} uses only {top.cpu_load_mhz:.1f} MHz, "
            f"re-ranking by memory"
        )
        ranked = rank_workloads(usable, Strategy.MEMORY)
        return Selection(workload=ranked[0], strategy=strategy, reranked=True)

    return Selection(workload=top, strategy=strategy)
