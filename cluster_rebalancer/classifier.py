# classifier.py

"""Bottleneck classification for compute nodes."""

from .config import Thresholds
from .models import Bottleneck, NodeRecord, Strategy


def classify(node: NodeRecord, thresholds: Thresholds) -> Bottleneck:
    """Flag every dimension whose usage meets or exceeds its threshold."""
    return Bottleneck(
        cpu_over=node.cpu_used_pct >= thresholds.cpu,
        mem_over=node.mem_used_pct >= thresholds.memory,
        storage_over=node.storage_used_pct >= thresholds.storage,
    )


def select_strategy(bottleneck: Bottleneck) -> Strategy:
    """Map bottleneck flags to a ranking strategy.

    A single overloaded dimension gets its own strategy; two or more fall
    back to the CPU-first multi-bottleneck ranking.
    """
    if bottleneck.count != 1:
        return Strategy.MULTI
    if bottleneck.storage_over:
        return Strategy.DISK
    if bottleneck.cpu_over:
        return Strategy.CPU
    return Strategy.MEMORY


def is_source(node: NodeRecord, thresholds: Thresholds) -> bool:
    return classify(node, thresholds).count > 0


def is_target(node: NodeRecord, thresholds: Thresholds) -> bool:
    # Storage never disqualifies a target.
    return node.cpu_used_pct < thresholds.cpu and node.mem_used_pct < thresholds.memory
