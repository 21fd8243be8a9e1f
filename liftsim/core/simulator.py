"""Main simulator class orchestrating the discrete event simulation."""

import math
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .customer import CustomerRecord, CustomerStatus
from .event_queue import Event, EventType
from .resource import OccupancySample, ResourceModel
from .scheduler import EventScheduler, StopReason
from .trajectory import Stage, TrajectoryExecutor
from ..models.facility_config import Configuration
from ..utils.logger import setup_logger
from ..workload.arrival_process import ArrivalGenerator
from ..workload.random_variates import RandomVariateSource


@dataclass(frozen=True)
class SimulationOutput:
    """Raw logs of one simulation run.

    Attributes:
        configuration: Configuration the run was built from
        seed: Random seed used
        end_time: End of the observation window
        stop_reason: Why the event loop stopped
        total_arrivals: Customers generated by the arrival process
        customers: One record per generated customer
        occupancy: Occupancy samples of every station, in time order per station
        event_log: Dispatched events in dispatch order
    """
    configuration: Configuration
    seed: Optional[int]
    end_time: float
    stop_reason: StopReason
    total_arrivals: int
    customers: Tuple[CustomerRecord, ...]
    occupancy: Tuple[OccupancySample, ...]
    event_log: Tuple[Event, ...]

    def occupancy_for(self, resource: str) -> List[OccupancySample]:
        return [s for s in self.occupancy if s.resource == resource]

    def count(self, status: CustomerStatus) -> int:
        return sum(1 for c in self.customers if c.status is status)

    @property
    def served(self) -> int:
        return self.count(CustomerStatus.COMPLETED)

    @property
    def rejected(self) -> int:
        return self.count(CustomerStatus.REJECTED)

    @property
    def in_flight(self) -> int:
        return self.count(CustomerStatus.IN_FLIGHT)


class Simulator:
    """Discrete event simulator for a tandem chain of capacitated stations.

    Each call to run() builds a fresh scheduler, station set and random
    streams, so repeated runs with the same seed give identical logs.
    """

    def __init__(self, configuration: Configuration, seed: Optional[int] = None,
                 drain: bool = False, record_events: bool = True):
        """Initialize simulator.

        Args:
            configuration: Validated facility configuration
            seed: Random seed for reproducibility
            drain: Keep processing customers already in the system after the
                horizon until the event queue is empty
            record_events: Keep the full event log in the output
        """
        self.configuration = configuration
        self.seed = seed
        self.drain = drain
        self.record_events = record_events
        self.logger = setup_logger(self.__class__.__name__)

        self.logger.debug(f"Simulator initialized: {configuration!r}, seed={seed}")

    def _build(self) -> Tuple[EventScheduler, Dict[str, ResourceModel],
                              TrajectoryExecutor, ArrivalGenerator]:
        cfg = self.configuration
        scheduler = EventScheduler(record_log=self.record_events)

        # One independent stream for arrivals plus one per station
        root = RandomVariateSource(self.seed)
        arrival_stream, *station_streams = root.spawn(1 + len(cfg.stages))

        resources = {
            stage.name: ResourceModel(
                resource_id=stage.name,
                capacity=stage.capacity,
                queue_capacity=stage.queue_capacity,
                scheduler=scheduler,
                variates=stream,
            )
            for stage, stream in zip(cfg.stages, station_streams)
        }
        executor = TrajectoryExecutor(
            [Stage(stage.name, stage.service_rate) for stage in cfg.stages],
            resources,
        )

        scheduler.register_handler(EventType.ARRIVAL, executor.on_arrival)
        scheduler.register_handler(EventType.SERVICE_START, executor.on_service_start)
        scheduler.register_handler(EventType.SERVICE_END, executor.on_service_end)

        generator = ArrivalGenerator(cfg.interarrival_rate, arrival_stream)
        return scheduler, resources, executor, generator

    def run(self) -> SimulationOutput:
        """Run the simulation.

        Returns:
            SimulationOutput with customer records, occupancy timeline and
            event log
        """
        start_time = time.time()
        cfg = self.configuration

        scheduler, resources, executor, generator = self._build()
        customers = generator.inject(scheduler, executor, cfg.horizon)

        stop_reason = scheduler.run(math.inf if self.drain else cfg.horizon)
        end_time = max(cfg.horizon, scheduler.now)

        occupancy: List[OccupancySample] = []
        for resource in resources.values():
            occupancy.extend(resource.occupancy)

        output = SimulationOutput(
            configuration=cfg,
            seed=self.seed,
            end_time=end_time,
            stop_reason=stop_reason,
            total_arrivals=len(customers),
            customers=tuple(c.to_record() for c in customers),
            occupancy=tuple(occupancy),
            event_log=tuple(scheduler.event_log),
        )

        elapsed_time = time.time() - start_time
        self.logger.info(
            f"Simulation finished ({stop_reason.value}) at t={scheduler.now:.2f}: "
            f"{output.total_arrivals} arrivals, {executor.completed} served, "
            f"{executor.rejected} rejected, {output.in_flight} in flight "
            f"[{scheduler.dispatched} events, {elapsed_time:.2f}s]"
        )
        return output
