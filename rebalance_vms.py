#!/usr/bin/env python3

"""
Run one rebalancing cycle from a source checkout, for example from cron:

    */5 * * * * /opt/cluster-vm-rebalancer/rebalance_vms.py --config /etc/rebalance.yml
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from cluster_rebalancer.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
