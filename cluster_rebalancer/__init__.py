"""Cluster load-rebalancing decision engine for OpenStack compute nodes."""

__version__ = "0.2.0"
