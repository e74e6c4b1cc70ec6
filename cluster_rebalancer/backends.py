# backends.py

"""OpenStack implementations of the telemetry, task and relocation interfaces."""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests
from openstack import exceptions as sdk_exceptions

from .exceptions import TelemetryError
from .interfaces import NodeFilter, WorkloadFilter
from .models import ActiveTask, RawNode, RawWorkload, StorageVolume, WorkloadRecord
from .utils import is_active_hypervisor

logger = logging.getLogger(__name__)

PLACEMENT_API_VERSION = "placement 1.32"
REQUEST_TIMEOUT = 10  # seconds


class OpenStackTelemetrySource:
    """Hypervisors, servers and placement storage, with Gnocchi measures."""

    def __init__(self, conn):
        self.conn = conn
        self.flavor_cache: Dict[str, Any] = {}
        self.provider_uuid_cache: Dict[str, str] = {}

    def _get(self, service: str, path: str, params: Optional[dict] = None,
             headers: Optional[dict] = None) -> requests.Response:
        url = self.conn.endpoint_for(service)
        all_headers = {"X-Auth-Token": self.conn.auth_token}
        all_headers.update(headers or {})
        try:
            return requests.get(f"{url}{path}", params=params, headers=all_headers,
                                timeout=REQUEST_TIMEOUT)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise TelemetryError(f"Failed to reach {service} API: {e}")

    def _placement(self, path: str, params: Optional[dict] = None) -> dict:
        response = self._get("placement", path, params=params,
                             headers={"OpenStack-API-Version": PLACEMENT_API_VERSION})
        response.raise_for_status()
        return response.json()

    def fetch_hypervisor_details(self) -> List[dict]:
        response = self._get("compute", "/os-hypervisors/detail")
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise TelemetryError(f"Failed to list hypervisors: {e}")
        return response.json().get("hypervisors", [])

    def list_nodes(self, node_filter: Optional[NodeFilter] = None) -> List[RawNode]:
        nodes = []
        for hypervisor in self.fetch_hypervisor_details():
            if not is_active_hypervisor(hypervisor):
                logger.debug(f"Skipping inactive hypervisor {hypervisor.get('hypervisor_hostname')}")
                continue

            hostname = hypervisor["hypervisor_hostname"]
            service_host = (hypervisor.get("service") or {}).get("host", hostname)
            node = RawNode(
                name=hostname,
                entity_id=f"{service_host}_{hostname}",
                vcpus=hypervisor.get("vcpus") or 0,
                memory_mb=hypervisor.get("memory_mb") or 0,
                volumes=[],
            )
            if node_filter and not node_filter(node):
                continue
            nodes.append(node._replace(volumes=self.get_storage_volumes(hostname)))
        return nodes

    def get_storage_volumes(self, hostname: str) -> List[StorageVolume]:
        """DISK_GB providers for a host: its own plus those shared through aggregates."""
        try:
            if hostname not in self.provider_uuid_cache:
                providers = self._placement("/resource_providers", {"name": hostname})
                providers = providers.get("resource_providers", [])
                if not providers:
                    logger.warning(f"No resource provider found for host {hostname}")
                    return []
                self.provider_uuid_cache[hostname] = providers[0]["uuid"]

            uuid = self.provider_uuid_cache[hostname]
            candidates = {uuid: hostname}

            aggregates = self._placement(f"/resource_providers/{uuid}/aggregates")
            aggregates = aggregates.get("aggregates", [])
            if aggregates:
                shared = self._placement("/resource_providers", {
                    "member_of": "in:" + ",".join(aggregates),
                    "resources": "DISK_GB:1",
                })
                for provider in shared.get("resource_providers", []):
                    candidates[provider["uuid"]] = provider["name"]

            volumes = []
            for provider_uuid, name in candidates.items():
                volume = self._disk_volume(provider_uuid, name)
                if volume is not None:
                    volumes.append(volume)
            return volumes

        except requests.HTTPError as e:
            logger.error(f"Error getting storage providers for host {hostname}: {e}")
            return []

    def _disk_volume(self, provider_uuid: str, name: str) -> Optional[StorageVolume]:
        inventories = self._placement(f"/resource_providers/{provider_uuid}/inventories")
        disk = inventories.get("inventories", {}).get("DISK_GB")
        if not disk:
            return None
        usages = self._placement(f"/resource_providers/{provider_uuid}/usages")
        used = usages.get("usages", {}).get("DISK_GB", 0)
        capacity = disk.get("total", 0) - disk.get("reserved", 0)
        return StorageVolume(name=name, capacity_gb=capacity, free_gb=capacity - used)

    def _flavor_for(self, vm) -> Any:
        flavor = vm.flavor or {}
        if flavor.get("ram") is not None:
            return flavor
        flavor_id = flavor.get("id")
        if flavor_id not in self.flavor_cache:
            self.flavor_cache[flavor_id] = self.conn.compute.get_flavor(flavor_id)
        return self.flavor_cache[flavor_id]

    def list_workloads(self, node_name: str,
                       workload_filter: Optional[WorkloadFilter] = None) -> List[RawWorkload]:
        try:
            vms = list(self.conn.compute.servers(all_projects=True, host=node_name))
        except sdk_exceptions.SDKException as e:
            raise TelemetryError(f"Failed to list servers on {node_name}: {e}")

        workloads = []
        for vm in vms:
            if vm.status.upper() != "ACTIVE":
                continue
            try:
                flavor = self._flavor_for(vm)
            except sdk_exceptions.SDKException as e:
                logger.error(f"Error getting flavor for VM {vm.name}: {e}")
                continue
            workload = RawWorkload(
                name=vm.name,
                entity_id=vm.id,
                vcpus=flavor.get("vcpus") or 0,
                memory_mb=flavor.get("ram") or 0,
            )
            if workload_filter and not workload_filter(workload):
                logger.debug(f"Skipping excluded VM {vm.name}")
                continue
            workloads.append(workload)
        return workloads

    def get_averaged_metric(self, entity_id: str, metric: str,
                            window_seconds: int) -> Optional[float]:
        start = datetime.now(timezone.utc) - timedelta(seconds=window_seconds)
        response = self._get(
            "metric",
            f"/v1/resource/generic/{entity_id}/metric/{metric}/measures",
            params={"start": start.isoformat(), "aggregation": "mean"},
        )
        if response.status_code == 404:
            return None
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.warning(f"Failed to get {metric} for {entity_id}: {e}")
            return None

        try:
            measures = response.json()
        except ValueError as e:
            logger.warning(f"Unreadable {metric} measures for {entity_id}: {e}")
            return None

        # Measures are [timestamp, granularity, value] triples.
        values = [m[2] for m in measures if m[2] is not None]
        if not values:
            return None
        return sum(values) / len(values)


class OpenStackTaskInspector:
    """Reports servers with a matching task_state as running tasks."""

    def __init__(self, conn):
        self.conn = conn

    def list_active_tasks(self, name_pattern: str) -> List[ActiveTask]:
        regex = re.compile(name_pattern, re.IGNORECASE)
        try:
            vms = list(self.conn.compute.servers(all_projects=True))
        except sdk_exceptions.SDKException as e:
            raise TelemetryError(f"Failed to list servers: {e}")

        return [
            ActiveTask(name=vm.task_state, state="running", entity=vm.name)
            for vm in vms
            if vm.task_state and regex.search(vm.task_state)
        ]


class OpenStackRelocationExecutor:
    """Submits live migrations; does not wait for completion."""

    def __init__(self, conn):
        self.conn = conn

    def relocate(self, workload: WorkloadRecord, destination_node: str,
                 destination_volume: str) -> bool:
        logger.info(f"Migrating {workload.name} to {destination_node} ({destination_volume})")
        try:
            self.conn.compute.live_migrate_server(
                workload.entity_id,
                host=destination_node,
                block_migration="auto",
            )
        except sdk_exceptions.SDKException as e:
            logger.error(f"Migration of {workload.name} rejected: {e}")
            return False
        return True


class DryRunExecutor:
    """Logs the relocation it would submit."""

    def relocate(self, workload: WorkloadRecord, destination_node: str,
                 destination_volume: str) -> bool:
        logger.info(f"[DRY RUN] Would migrate {workload.name} to "
                    f"{destination_node} ({destination_volume})")
        return True
