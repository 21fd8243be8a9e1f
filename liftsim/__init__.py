"""liftsim: queueing simulator and analytical solver for a lift and run facility."""

from .core.simulator import Simulator, SimulationOutput
from .core.event_queue import Event, EventType, EventQueue
from .core.metrics_collector import MetricsAggregator
from .core.errors import InvalidParameter, UnstableSystem
from .analytical.network_solver import AnalyticalNetworkSolver, NetworkTopology, StationSpec
from .models.facility_config import Configuration, StageConfig
from .utils.logger import setup_logger

__version__ = "0.1.0"
__all__ = [
    "Simulator",
    "SimulationOutput",
    "Event",
    "EventType",
    "EventQueue",
    "MetricsAggregator",
    "InvalidParameter",
    "UnstableSystem",
    "AnalyticalNetworkSolver",
    "NetworkTopology",
    "StationSpec",
    "Configuration",
    "StageConfig",
    "setup_logger",
]
