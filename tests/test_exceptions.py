"""Tests for the rebalancer error hierarchy."""

import pytest

from cluster_rebalancer.exceptions import (
    BalancerError, ConfigurationError, MigrationError, ResourceError, TelemetryError,
)


@pytest.mark.parametrize("error", [TelemetryError, ResourceError, ConfigurationError])
def test_cycle_errors_are_balancer_errors(error):
    with pytest.raises(BalancerError):
        raise error("boom")


def test_migration_error_keeps_the_move():
    error = MigrationError("web-1", "cmp2", "no valid host")

    assert isinstance(error, BalancerError)
    assert (error.workload, error.destination, error.reason) == ("web-1", "cmp2", "no valid host")
    assert str(error) == "web-1 -> cmp2: no valid host"
