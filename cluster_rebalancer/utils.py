# utils.py

"""Logging, cloud connection and unit helpers shared by the rebalancer."""

import logging
import os
from typing import Any, Dict, List, Optional

import openstack
from openstack.connection import Connection

from .config import LOG_DATE_FORMAT, LOG_FORMAT, QUIET_LOGGERS, REQUIRED_ENV_VARS
from .exceptions import ConfigurationError, TelemetryError

def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Log to stderr, and also append to ``log_file`` when one is configured."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    # SDK request tracing stays out of the cycle log.
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

def get_openstack_connection() -> Connection:
    """
    Connect to the cloud named by OS_CLOUD in clouds.yaml or, when that is
    unset, with the OS_* credentials from the environment.

    Raises:
        ConfigurationError: OS_CLOUD is unset and the credentials are incomplete.
        TelemetryError: the cloud could not be reached or rejected the login.
    """
    cloud = os.environ.get("OS_CLOUD")
    if not cloud:
        missing = [var for var in REQUIRED_ENV_VARS if not os.environ.get(var)]
        if missing:
            raise ConfigurationError(
                f"Set OS_CLOUD or the environment variables: {', '.join(missing)}"
            )

    try:
        return openstack.connect(cloud=cloud)
    except Exception as e:
        raise TelemetryError(f"Cannot connect to cloud {cloud or 'from environment'}: {e}")

def is_active_hypervisor(hypervisor: Dict[str, Any]) -> bool:
    """True for hypervisors that are up and enabled."""
    return hypervisor.get("state") == "up" and hypervisor.get("status") == "enabled"

def mb_to_gb(value: float) -> float:
    return value / 1024.0

def mb_to_kb(value: float) -> float:
    return value * 1024.0

def bytes_to_gb(value: float) -> float:
    return value / (1024.0 ** 3)

def percent(used: float, total: float) -> float:
    """Usage percentage; 0 when total is not positive."""
    if total <= 0:
        return 0.0
    return used / total * 100.0
