"""Core simulation components."""

from .errors import LiftSimError, InvalidParameter, UnstableSystem
from .event_queue import Event, EventType, EventQueue
from .scheduler import EventScheduler, StopReason
from .customer import Customer, CustomerRecord, CustomerStatus, StageRecord
from .resource import Admission, OccupancySample, ResourceModel, ResourceState
from .trajectory import Stage, TrajectoryExecutor
from .simulator import Simulator, SimulationOutput
from .metrics_collector import MetricsAggregator, SimulationSummary

__all__ = [
    "LiftSimError", "InvalidParameter", "UnstableSystem",
    "Event", "EventType", "EventQueue",
    "EventScheduler", "StopReason",
    "Customer", "CustomerRecord", "CustomerStatus", "StageRecord",
    "Admission", "OccupancySample", "ResourceModel", "ResourceState",
    "Stage", "TrajectoryExecutor",
    "Simulator", "SimulationOutput",
    "MetricsAggregator", "SimulationSummary",
]
