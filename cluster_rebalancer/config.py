# config.py

"""Configuration settings for the cluster rebalancer."""

import logging
import re
from typing import Any, Dict, FrozenSet, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Thresholds (percent)
DEFAULT_CPU_THRESHOLD = 80.0
DEFAULT_MEMORY_THRESHOLD = 80.0
DEFAULT_STORAGE_THRESHOLD = 85.0

# Averaging window for telemetry queries
DEFAULT_STATISTICS_WINDOW = 300  # seconds

# Storage providers considered as local volumes (regex alternation)
DEFAULT_VOLUME_PATTERNS = (".*",)

# In-flight server task states that hold the cluster-wide lock
DEFAULT_LOCK_TASK_PATTERN = "migrat"
IN_FLIGHT_TASK_STATES = frozenset({"running", "queued"})

# Top CPU candidates below this load are treated as idle
CPU_LOW_SIGNAL_FLOOR_MHZ = 10.0

# Gnocchi metric names
NODE_CPU_PERCENT_METRIC = "compute.node.cpu.percent"
NODE_MEMORY_PERCENT_METRIC = "compute.node.memory.percent"
NODE_CPU_FREQUENCY_METRIC = "compute.node.cpu.frequency"  # MHz
WORKLOAD_CPU_PERCENT_METRIC = "cpu_util"
WORKLOAD_MEMORY_USAGE_METRIC = "memory.usage"  # MB
WORKLOAD_DISK_USAGE_METRIC = "disk.usage"  # bytes

# Required OpenStack environment variables
REQUIRED_ENV_VARS = [
    'OS_AUTH_URL',
    'OS_PROJECT_NAME',
    'OS_USERNAME',
    'OS_PASSWORD'
]

# Logging format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
QUIET_LOGGERS = ("keystoneauth", "urllib3", "stevedore")


class Thresholds(BaseModel):
    """Per-dimension overload thresholds, in percent."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    cpu: float = Field(DEFAULT_CPU_THRESHOLD, gt=0, le=100)
    memory: float = Field(DEFAULT_MEMORY_THRESHOLD, gt=0, le=100)
    storage: float = Field(DEFAULT_STORAGE_THRESHOLD, gt=0, le=100)


class BalancerConfig(BaseModel):
    """Immutable settings for a single rebalancing cycle.

    Volume patterns are joined into one alternation and matched with
    ``re.search`` ignoring case. The lock pattern is matched the same way
    against task names. Excluded node and workload names are compared
    exactly, case-sensitively.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    thresholds: Thresholds = Field(default_factory=Thresholds)
    statistics_window: int = Field(DEFAULT_STATISTICS_WINDOW, gt=0)
    volume_patterns: Tuple[str, ...] = Field(DEFAULT_VOLUME_PATTERNS, min_length=1)
    excluded_nodes: FrozenSet[str] = frozenset()
    excluded_workloads: FrozenSet[str] = frozenset()
    lock_task_pattern: str = DEFAULT_LOCK_TASK_PATTERN
    log_file: Optional[str] = None
    dry_run: bool = False

    @field_validator("thresholds", mode="before")
    @classmethod
    def empty_thresholds(cls, value):
        return {} if value is None else value

    @field_validator("volume_patterns", mode="before")
    @classmethod
    def default_patterns(cls, value):
        if value is None:
            return DEFAULT_VOLUME_PATTERNS
        return (value,) if isinstance(value, str) else value

    @field_validator("excluded_nodes", "excluded_workloads", mode="before")
    @classmethod
    def name_set(cls, value):
        if value is None:
            return frozenset()
        return {value} if isinstance(value, str) else value

    @field_validator("volume_patterns")
    @classmethod
    def compile_volume_patterns(cls, value):
        _compile("|".join(f"(?:{p})" for p in value))
        return value

    @field_validator("lock_task_pattern")
    @classmethod
    def compile_lock_pattern(cls, value):
        _compile(value)
        return value

    @property
    def volume_regex(self) -> re.Pattern:
        alternation = "|".join(f"(?:{p})" for p in self.volume_patterns)
        return re.compile(alternation, re.IGNORECASE)

    @property
    def lock_regex(self) -> re.Pattern:
        return re.compile(self.lock_task_pattern, re.IGNORECASE)

    def matches_volume(self, name: str) -> bool:
        return self.volume_regex.search(name) is not None


def _compile(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise ValueError(f"invalid pattern {pattern!r}: {e}")


def load_config(path: Optional[str] = None, **overrides: Any) -> BalancerConfig:
    """
    Load configuration from an optional YAML file and apply overrides.

    Overrides named ``cpu_threshold``, ``memory_threshold`` and
    ``storage_threshold`` replace the matching threshold; any other key
    replaces the BalancerConfig field of the same name. ``None`` values
    are ignored so unset CLI flags keep the file's settings.
    """
    data: Dict[str, Any] = {}
    if path:
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Unable to load config {path}: {e}")
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration root in {path} must be a mapping")
        logger.debug(f"Loaded configuration from {path}")

    data = dict(data)
    if "statistics_window_seconds" in data:
        data["statistics_window"] = data.pop("statistics_window_seconds")

    overrides = {k: v for k, v in overrides.items() if v is not None}
    thresholds = data.get("thresholds") or {}
    if isinstance(thresholds, dict):
        thresholds = dict(thresholds)
        for name in ("cpu", "memory", "storage"):
            if f"{name}_threshold" in overrides:
                thresholds[name] = overrides.pop(f"{name}_threshold")
    data.update(overrides)
    data["thresholds"] = thresholds

    try:
        return BalancerConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")
