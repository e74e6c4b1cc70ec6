# exceptions.py

"""Errors raised during a rebalancing cycle.

A TelemetryError aborts the cycle, a ResourceError drops one node from it,
and a MigrationError turns an initiated move into a rejected one.
"""


class BalancerError(Exception):
    """Root of every error a cycle reports; the CLI exits 1 on it."""


class TelemetryError(BalancerError):
    """A cluster API could not be reached or listed."""


class ResourceError(BalancerError):
    """A node's counters or storage are unusable this cycle."""


class MigrationError(BalancerError):
    """The executor refused to relocate a workload."""

    def __init__(self, workload: str, destination: str, reason: str):
        super().__init__(f"{workload} -> {destination}: {reason}")
        self.workload = workload
        self.destination = destination
        self.reason = reason


class ConfigurationError(BalancerError):
    """Config file, command-line flags or cloud credentials are invalid."""
