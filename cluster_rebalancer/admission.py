# admission.py

"""Admission control for migration targets."""

import logging
from dataclasses import replace
from typing import Iterable, Optional

from .config import Thresholds
from .models import NodeRecord, WorkloadRecord

logger = logging.getLogger(__name__)


def projected_cpu_pct(candidate: WorkloadRecord, target: NodeRecord) -> float:
    """Target CPU usage after the move, in percent."""
    return (target.used_cpu_mhz + candidate.cpu_load_mhz) / target.total_cpu_mhz * 100.0


def admits(candidate: WorkloadRecord, target: NodeRecord, thresholds: Thresholds) -> bool:
    """Check disk, memory and CPU headroom for a single target."""
    if target.max_free_storage_gb < candidate.used_storage_gb:
        logger.debug(
            f"{target.name}: {target.max_free_storage_gb:.1f} GB free on {target.volume}, "
            f"need {candidate.used_storage_gb:.1f} GB"
        )
        return False

    if target.free_ram_gb < candidate.configured_mem_gb:
        logger.debug(
            f"{target.name}: {target.free_ram_gb:.1f} GB RAM free, "
            f"need {candidate.configured_mem_gb:.1f} GB"
        )
        return False

    cpu_after = projected_cpu_pct(candidate, target)
    # A target landing exactly on the threshold is rejected.
    if cpu_after >= thresholds.cpu:
        logger.debug(f"{target.name}: projected CPU {cpu_after:.1f}% >= {thresholds.cpu}%")
        return False

    return True


def find_target(candidate: WorkloadRecord, targets: Iterable[NodeRecord],
                thresholds: Thresholds, exclude: Optional[str] = None) -> Optional[NodeRecord]:
    """First admitting node in ascending load order, or None."""
    for target in sorted(targets, key=lambda n: n.load_index):
        if target.name == exclude:
            continue
        if admits(candidate, target, thresholds):
            return target
    return None


def reserve(target: NodeRecord, candidate: WorkloadRecord) -> NodeRecord:
    """Return a copy of ``target`` with the candidate's footprint applied."""
    return replace(
        target,
        used_ram_gb=target.used_ram_gb + candidate.configured_mem_gb,
        used_cpu_mhz=target.used_cpu_mhz + candidate.cpu_load_mhz,
        max_free_storage_gb=target.max_free_storage_gb - candidate.used_storage_gb,
    )
