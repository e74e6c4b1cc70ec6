# cli.py

"""Command-line interface for the cluster rebalancer."""

import argparse
import logging
import sys

from .backends import (
    DryRunExecutor, OpenStackRelocationExecutor,
    OpenStackTaskInspector, OpenStackTelemetrySource,
)
from .config import load_config
from .exceptions import BalancerError, ConfigurationError
from .metrics import build_node_records
from .planner import RebalancePlanner, describe_nodes
from .utils import get_openstack_connection, setup_logging

logger = logging.getLogger(__name__)

def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Relocate at most one VM away from an overloaded compute node"
    )
    parser.add_argument(
        "--config", "-c",
        help="YAML configuration file"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Decide the migration without performing it"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--show-resources",
        action="store_true",
        help="Show resources and classification for all nodes"
    )
    parser.add_argument(
        "--cpu-threshold",
        type=float,
        help="CPU usage percent at which a node is overloaded"
    )
    parser.add_argument(
        "--memory-threshold",
        type=float,
        help="Memory usage percent at which a node is overloaded"
    )
    parser.add_argument(
        "--storage-threshold",
        type=float,
        help="Storage usage percent at which a node is overloaded"
    )
    parser.add_argument(
        "--window",
        type=int,
        dest="statistics_window",
        help="Statistics averaging window in seconds"
    )
    parser.add_argument(
        "--log-file",
        help="Append log output to this file"
    )
    return parser.parse_args(argv)

def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = load_config(
            args.config,
            cpu_threshold=args.cpu_threshold,
            memory_threshold=args.memory_threshold,
            storage_threshold=args.storage_threshold,
            statistics_window=args.statistics_window,
            log_file=args.log_file,
            dry_run=args.dry_run or None,
        )
    except ConfigurationError as e:
        setup_logging(args.verbose)
        logger.error(f"Configuration error: {e}")
        return 1

    setup_logging(args.verbose, config.log_file)

    try:
        conn = get_openstack_connection()
        telemetry = OpenStackTelemetrySource(conn)

        if args.show_resources:
            logger.info("Current node resources:")
            describe_nodes(build_node_records(telemetry, config), config)
            return 0

        executor = DryRunExecutor() if config.dry_run else OpenStackRelocationExecutor(conn)
        planner = RebalancePlanner(telemetry, OpenStackTaskInspector(conn), executor, config)
        planner.run_cycle()
        return 0

    except BalancerError as e:
        logger.error(f"Rebalance cycle aborted: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1

if __name__ == "__main__":
    sys.exit(main())
