# metrics.py

"""Builds per-cycle node and workload records from raw telemetry."""

import logging
from typing import List, Optional

from .config import (
    BalancerConfig,
    NODE_CPU_PERCENT_METRIC, NODE_MEMORY_PERCENT_METRIC, NODE_CPU_FREQUENCY_METRIC,
    WORKLOAD_CPU_PERCENT_METRIC, WORKLOAD_MEMORY_USAGE_METRIC, WORKLOAD_DISK_USAGE_METRIC,
)
from .exceptions import ResourceError
from .interfaces import ClusterTelemetrySource
from .models import NodeRecord, RawNode, RawWorkload, StorageVolume, WorkloadRecord
from .utils import bytes_to_gb, mb_to_gb, mb_to_kb, percent

logger = logging.getLogger(__name__)


def representative_volume(volumes: List[StorageVolume],
                          config: BalancerConfig) -> Optional[StorageVolume]:
    """Matching volume with the most free space, or None."""
    matching = [v for v in volumes if config.matches_volume(v.name)]
    if not matching:
        return None
    return max(matching, key=lambda v: v.free_gb)


def build_node_record(source: ClusterTelemetrySource, raw: RawNode,
                      config: BalancerConfig) -> NodeRecord:
    """
    Build a NodeRecord for one hypervisor.

    Raises:
        ResourceError: required counters are missing or non-positive, or
            no storage volume matches the configured patterns.
    """
    window = config.statistics_window
    cpu_pct = source.get_averaged_metric(raw.entity_id, NODE_CPU_PERCENT_METRIC, window)
    mem_pct = source.get_averaged_metric(raw.entity_id, NODE_MEMORY_PERCENT_METRIC, window)
    core_mhz = source.get_averaged_metric(raw.entity_id, NODE_CPU_FREQUENCY_METRIC, window)

    required = {
        "cpu percent": cpu_pct,
        "memory percent": mem_pct,
        "cpu frequency": core_mhz,
        "vcpus": raw.vcpus,
        "memory_mb": raw.memory_mb,
    }
    unusable = [name for name, value in required.items() if value is None or value <= 0]
    if unusable:
        raise ResourceError(f"missing or non-positive counters: {', '.join(unusable)}")

    volume = representative_volume(raw.volumes, config)
    if volume is None:
        raise ResourceError("no storage volume matches the configured patterns")
    if volume.capacity_gb <= 0:
        raise ResourceError(f"storage volume {volume.name} reports no capacity")

    total_ram_gb = mb_to_gb(raw.memory_mb)
    total_cpu_mhz = raw.vcpus * core_mhz
    return NodeRecord(
        name=raw.name,
        cpu_used_pct=cpu_pct,
        mem_used_pct=mem_pct,
        storage_used_pct=percent(volume.capacity_gb - volume.free_gb, volume.capacity_gb),
        max_free_storage_gb=volume.free_gb,
        total_ram_gb=total_ram_gb,
        used_ram_gb=mem_pct * total_ram_gb / 100.0,
        total_cpu_mhz=total_cpu_mhz,
        used_cpu_mhz=cpu_pct * total_cpu_mhz / 100.0,
        volume=volume.name,
        entity_id=raw.entity_id,
        vcpus=raw.vcpus,
    )


def build_node_records(source: ClusterTelemetrySource,
                       config: BalancerConfig) -> List[NodeRecord]:
    """Collect records for every usable, non-excluded node."""
    raw_nodes = source.list_nodes(lambda n: n.name not in config.excluded_nodes)

    records = []
    for raw in raw_nodes:
        try:
            record = build_node_record(source, raw, config)
        except ResourceError as e:
            logger.warning(f"Excluding node {raw.name} from this cycle: {e}")
            continue
        logger.debug(
            f"Node {record.name}: CPU {record.cpu_used_pct:.1f}%, "
            f"RAM {record.mem_used_pct:.1f}%, storage {record.storage_used_pct:.1f}% "
            f"on {record.volume} ({record.max_free_storage_gb:.1f} GB free)"
        )
        records.append(record)
    return records


def _metric_or_zero(source: ClusterTelemetrySource, raw: RawWorkload,
                    metric: str, window: int) -> float:
    value = source.get_averaged_metric(raw.entity_id, metric, window)
    if value is None:
        logger.debug(f"No {metric} measures for {raw.name}")
        return 0.0
    return value


def build_workload_record(source: ClusterTelemetrySource, raw: RawWorkload,
                          node: NodeRecord, config: BalancerConfig) -> WorkloadRecord:
    window = config.statistics_window
    core_mhz = node.total_cpu_mhz / node.vcpus if node.vcpus > 0 else 0.0

    cpu_pct = _metric_or_zero(source, raw, WORKLOAD_CPU_PERCENT_METRIC, window)
    memory_mb = _metric_or_zero(source, raw, WORKLOAD_MEMORY_USAGE_METRIC, window)
    disk_bytes = _metric_or_zero(source, raw, WORKLOAD_DISK_USAGE_METRIC, window)

    return WorkloadRecord(
        name=raw.name,
        cpu_load_mhz=cpu_pct / 100.0 * raw.vcpus * core_mhz,
        mem_usage_kb=mb_to_kb(memory_mb),
        configured_mem_gb=mb_to_gb(raw.memory_mb),
        used_storage_gb=bytes_to_gb(disk_bytes),
        entity_id=raw.entity_id,
    )


def build_workload_records(source: ClusterTelemetrySource, node: NodeRecord,
                           config: BalancerConfig) -> List[WorkloadRecord]:
    """Collect records for the non-excluded workloads running on ``node``."""
    raw_workloads = source.list_workloads(
        node.name, lambda w: w.name not in config.excluded_workloads
    )
    return [build_workload_record(source, raw, node, config) for raw in raw_workloads]
