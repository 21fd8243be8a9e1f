"""Closed-form queueing network analysis."""

from .network_solver import (
    NOT_APPLICABLE,
    AnalyticalNetworkSolver,
    AnalyticalResult,
    NetworkTopology,
    StationMetrics,
    StationSpec,
    mmc_metrics,
)

__all__ = [
    "NOT_APPLICABLE",
    "AnalyticalNetworkSolver",
    "AnalyticalResult",
    "NetworkTopology",
    "StationMetrics",
    "StationSpec",
    "mmc_metrics",
]
