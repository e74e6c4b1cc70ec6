"""Tests for migration candidate ranking and selection."""

from cluster_rebalancer.models import Strategy
from cluster_rebalancer.selector import has_signal, rank_workloads, select_candidate
from tests.fakes import workload


def names(workloads):
    return [w.name for w in workloads]


def test_cpu_strategy_picks_busiest_workload():
    workloads = [
        workload("idle-1", cpu_mhz=50, mem_kb=2_000_000),
        workload("w", cpu_mhz=3000, mem_kb=1_000_000),
        workload("idle-2", cpu_mhz=50, mem_kb=3_000_000),
    ]
    selection = select_candidate(workloads, Strategy.CPU)
    assert selection.workload.name == "w"
    assert selection.strategy is Strategy.CPU
    assert not selection.reranked


def test_cpu_strategy_breaks_ties_on_memory_usage():
    workloads = [
        workload("a", cpu_mhz=500, mem_kb=100),
        workload("b", cpu_mhz=500, mem_kb=900),
    ]
    assert names(rank_workloads(workloads, Strategy.CPU)) == ["b", "a"]


def test_low_cpu_signal_triggers_memory_rerank():
    workloads = [
        workload("top-cpu", cpu_mhz=2, mem_kb=100, configured_gb=2),
        workload("big-mem", cpu_mhz=1, mem_kb=50, configured_gb=16),
    ]
    selection = select_candidate(workloads, Strategy.CPU)
    assert selection.reranked
    assert selection.workload.name == "big-mem"


def test_cpu_floor_is_exclusive():
    workloads = [
        workload("ten", cpu_mhz=10, configured_gb=2),
        workload("big-mem", cpu_mhz=5, configured_gb=32),
    ]
    selection = select_candidate(workloads, Strategy.CPU)
    assert selection.workload.name == "ten"
    assert not selection.reranked


def test_multi_bottleneck_never_reranks():
    workloads = [
        workload("top-cpu", cpu_mhz=2, configured_gb=2),
        workload("big-mem", cpu_mhz=1, configured_gb=16),
    ]
    selection = select_candidate(workloads, Strategy.MULTI)
    assert selection.workload.name == "top-cpu"
    assert not selection.reranked


def test_memory_strategy_ranks_by_configured_memory_first():
    workloads = [
        workload("busy", cpu_mhz=4000, mem_kb=9_000_000, configured_gb=8),
        workload("large", cpu_mhz=1, mem_kb=10, configured_gb=32),
        workload("large-active", cpu_mhz=1, mem_kb=500, configured_gb=32),
    ]
    assert names(rank_workloads(workloads, Strategy.MEMORY)) == ["large-active", "large", "busy"]


def test_disk_strategy_ranks_by_used_storage():
    workloads = [
        workload("small-disk", disk_gb=10, configured_gb=64, cpu_mhz=5000),
        workload("big-disk", disk_gb=200, configured_gb=2, cpu_mhz=1),
        workload("big-disk-more-ram", disk_gb=200, configured_gb=8, cpu_mhz=1),
    ]
    selection = select_candidate(workloads, Strategy.DISK)
    assert selection.workload.name == "big-disk-more-ram"


def test_disk_strategy_with_tiny_cpu_is_not_reranked():
    workloads = [
        workload("big-disk", disk_gb=200, configured_gb=2, cpu_mhz=1),
        workload("big-mem", disk_gb=1, configured_gb=64, cpu_mhz=1),
    ]
    selection = select_candidate(workloads, Strategy.DISK)
    assert selection.workload.name == "big-disk"
    assert not selection.reranked


def test_multi_strategy_key_order():
    workloads = [
        workload("a", cpu_mhz=100, configured_gb=4, disk_gb=50),
        workload("b", cpu_mhz=100, configured_gb=8, disk_gb=10),
        workload("c", cpu_mhz=100, configured_gb=8, disk_gb=20),
    ]
    assert names(rank_workloads(workloads, Strategy.MULTI)) == ["c", "b", "a"]


def test_workloads_without_signal_are_dropped():
    silent = workload("silent", cpu_mhz=0, mem_kb=0, disk_gb=0, configured_gb=64)
    assert not has_signal(silent)

    selection = select_candidate([silent, workload("live", disk_gb=1)], Strategy.MEMORY)
    assert selection.workload.name == "live"


def test_no_usable_workload_returns_none():
    assert select_candidate([], Strategy.CPU) is None
    assert select_candidate([workload("silent", cpu_mhz=-1)], Strategy.CPU) is None
