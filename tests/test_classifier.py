"""Tests for bottleneck classification and strategy selection."""

import itertools

import pytest

from cluster_rebalancer.classifier import classify, is_source, is_target, select_strategy
from cluster_rebalancer.config import Thresholds
from cluster_rebalancer.models import Bottleneck, Strategy
from tests.fakes import node

THRESHOLDS = Thresholds(cpu=80, memory=80, storage=85)


def test_classify_flags_each_dimension():
    assert classify(node(cpu_pct=85, mem_pct=10, storage_pct=10), THRESHOLDS) == Bottleneck(True, False, False)
    assert classify(node(cpu_pct=10, mem_pct=90, storage_pct=10), THRESHOLDS) == Bottleneck(False, True, False)
    assert classify(node(cpu_pct=10, mem_pct=10, storage_pct=95), THRESHOLDS) == Bottleneck(False, False, True)


def test_threshold_is_inclusive_for_sources():
    exact = node(cpu_pct=80, mem_pct=10, storage_pct=10)
    assert classify(exact, THRESHOLDS).cpu_over
    assert is_source(exact, THRESHOLDS)
    assert not is_target(exact, THRESHOLDS)


@pytest.mark.parametrize("flags,expected", [
    ((False, False, True), Strategy.DISK),
    ((True, False, False), Strategy.CPU),
    ((False, True, False), Strategy.MEMORY),
    ((True, True, False), Strategy.MULTI),
    ((True, False, True), Strategy.MULTI),
    ((False, True, True), Strategy.MULTI),
    ((True, True, True), Strategy.MULTI),
])
def test_strategy_table(flags, expected):
    assert select_strategy(Bottleneck(*flags)) is expected


def test_strategy_depends_only_on_flags():
    for flags in itertools.product([False, True], repeat=3):
        if not any(flags):
            continue
        assert select_strategy(Bottleneck(*flags)) is select_strategy(Bottleneck(*flags))


@pytest.mark.parametrize("storage_pct", [0.0, 50.0, 85.0, 99.9])
def test_target_ignores_storage(storage_pct):
    assert is_target(node(cpu_pct=79.9, mem_pct=79.9, storage_pct=storage_pct), THRESHOLDS)


def test_storage_only_overload_is_both_source_and_target():
    full_disk = node(cpu_pct=20, mem_pct=20, storage_pct=95)
    assert is_source(full_disk, THRESHOLDS)
    assert is_target(full_disk, THRESHOLDS)


def test_idle_node_is_not_a_source():
    assert not is_source(node(cpu_pct=10, mem_pct=10, storage_pct=10), THRESHOLDS)
