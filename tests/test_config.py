"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from cluster_rebalancer.config import (
    BalancerConfig, DEFAULT_CPU_THRESHOLD, Thresholds, load_config,
)
from cluster_rebalancer.exceptions import ConfigurationError


def test_defaults():
    config = load_config()
    assert config.thresholds.cpu == DEFAULT_CPU_THRESHOLD
    assert config.statistics_window == 300
    assert config.excluded_nodes == frozenset()
    assert not config.dry_run


def test_yaml_file(tmp_path):
    path = tmp_path / "rebalance.yml"
    path.write_text(
        "thresholds:\n"
        "  cpu: 70\n"
        "  storage: 90\n"
        "statistics_window_seconds: 600\n"
        "volume_patterns: [local, ceph]\n"
        "excluded_nodes: [compute-01]\n"
        "excluded_workloads: dns\n"
        "log_file: /tmp/rebalance.log\n"
    )
    config = load_config(str(path))

    assert config.thresholds == Thresholds(cpu=70, memory=80, storage=90)
    assert config.statistics_window == 600
    assert config.volume_patterns == ("local", "ceph")
    assert config.excluded_nodes == frozenset({"compute-01"})
    assert config.excluded_workloads == frozenset({"dns"})
    assert config.log_file == "/tmp/rebalance.log"


def test_overrides_take_precedence(tmp_path):
    path = tmp_path / "rebalance.yml"
    path.write_text("thresholds:\n  cpu: 70\n  memory: 60\n")

    config = load_config(str(path), cpu_threshold=75, memory_threshold=None, dry_run=True)

    assert config.thresholds.cpu == 75
    assert config.thresholds.memory == 60
    assert config.dry_run


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(str(tmp_path / "missing.yml"))


@pytest.mark.parametrize("value", [0, -5, 101])
def test_threshold_out_of_range(value):
    with pytest.raises(ValidationError):
        Thresholds(cpu=value)


def test_invalid_pattern_raises():
    with pytest.raises(ValidationError):
        BalancerConfig(volume_patterns=("local[",))


def test_unknown_override_raises():
    with pytest.raises(ConfigurationError):
        load_config(color="blue")


def test_volume_alternation_matches_substrings():
    config = BalancerConfig(volume_patterns=("local", "^ceph-"))
    assert config.matches_volume("compute-01-LOCAL-ssd")
    assert config.matches_volume("ceph-pool")
    assert not config.matches_volume("pool-ceph-")


def test_empty_yaml_keys_use_defaults(tmp_path):
    path = tmp_path / "rebalance.yml"
    path.write_text(
        "thresholds:\n"
        "volume_patterns:\n"
        "excluded_nodes:\n"
        "excluded_workloads:\n"
    )
    config = load_config(str(path))

    assert config.thresholds == Thresholds()
    assert config.volume_patterns == BalancerConfig().volume_patterns
    assert config.excluded_nodes == frozenset()
    assert config.excluded_workloads == frozenset()


def test_numeric_strings_are_coerced(tmp_path):
    path = tmp_path / "rebalance.yml"
    path.write_text("thresholds:\n  memory: '75'\nstatistics_window_seconds: '120'\n")
    config = load_config(str(path))

    assert config.thresholds.memory == 75.0
    assert config.statistics_window == 120


@pytest.mark.parametrize("body", [
    "thresholds:\n  storage: 0\n",
    "statistics_window_seconds: -1\n",
    "volume_patterns: []\n",
    "lock_task_pattern: '(unclosed'\n",
    "excluded_nodes: 5\n",
    "unknown_key: true\n",
    "- just\n- a list\n",
])
def test_invalid_file_raises_configuration_error(tmp_path, body):
    path = tmp_path / "rebalance.yml"
    path.write_text(body)
    with pytest.raises(ConfigurationError):
        load_config(str(path))


def test_config_is_immutable():
    config = BalancerConfig()
    with pytest.raises(ValidationError):
        config.statistics_window = 10
