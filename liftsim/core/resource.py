"""Capacitated FCFS station with an optional finite waiting room."""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, List, Optional

from .customer import Customer, StageRecord
from .errors import InvalidParameter
from .event_queue import Event, EventType
from ..utils.logger import setup_logger


class Admission(Enum):
    """Outcome of offering a customer to a station."""
    ADMITTED_TO_SERVICE = "admitted_to_service"
    ADMITTED_TO_QUEUE = "admitted_to_queue"
    REJECTED = "rejected"


@dataclass
class ResourceState:
    """Mutable occupancy counters, owned by exactly one ResourceModel."""
    busy_servers: int = 0
    queue_length: int = 0


@dataclass(frozen=True)
class OccupancySample:
    """Occupancy of one station right after a state change."""
    resource: str
    time: float
    queue_length: int
    busy_servers: int
    capacity: int

    @property
    def in_system(self) -> int:
        return self.queue_length + self.busy_servers


class ResourceModel:
    """Station with `capacity` parallel servers and a FCFS waiting room.

    A queue_capacity of None means the waiting room is unbounded and the
    station never rejects. queue_capacity = 0 makes it a pure loss system.
    """

    def __init__(self, resource_id: str, capacity: int, queue_capacity: Optional[int],
                 scheduler, variates):
        """Initialize the station.

        Args:
            resource_id: Station name
            capacity: Number of parallel servers (>= 1)
            queue_capacity: Waiting room size, or None for unbounded
            scheduler: EventScheduler used to schedule service events
            variates: RandomVariateSource used for service times
        """
        if capacity < 1:
            raise InvalidParameter(f"{resource_id}: capacity must be >= 1")
        if queue_capacity is not None and queue_capacity < 0:
            raise InvalidParameter(f"{resource_id}: queue_capacity must be >= 0")

        self.resource_id = resource_id
        self.capacity = capacity
        self.queue_capacity = queue_capacity
        self.scheduler = scheduler
        self.variates = variates
        self.logger = setup_logger(self.__class__.__name__)

        self.state = ResourceState()
        self._waiting: Deque[Customer] = deque()
        self.occupancy: List[OccupancySample] = []

        # Counters
        self.admitted = 0
        self.rejected = 0
        self.completed = 0

        self._snapshot(scheduler.now)

    @property
    def busy_servers(self) -> int:
        return self.state.busy_servers

    @property
    def queue_length(self) -> int:
        return self.state.queue_length

    def has_free_server(self) -> bool:
        return self.state.busy_servers < self.capacity

    def has_queue_room(self) -> bool:
        if self.queue_capacity is None:
            return True
        return self.state.queue_length < self.queue_capacity

    def try_enqueue(self, customer: Customer, now: float, service_rate: float) -> Admission:
        """Offer a customer to the station.

        Args:
            customer: Arriving customer
            now: Current simulation time
            service_rate: Exponential rate of this customer's service here

        Returns:
            Admission outcome
        """
        if self.has_free_server():
            customer.stage_history.append(StageRecord(self.resource_id, now, service_rate))
            self.admitted += 1
            self._seize(customer, now)
            return Admission.ADMITTED_TO_SERVICE

        if self.has_queue_room():
            customer.stage_history.append(StageRecord(self.resource_id, now, service_rate))
            self.admitted += 1
            self._waiting.append(customer)
            self.state.queue_length += 1
            self._snapshot(now)
            return Admission.ADMITTED_TO_QUEUE

        customer.rejected = True
        customer.rejected_at = self.resource_id
        self.rejected += 1
        self.logger.debug(
            f"t={now:.3f} {self.resource_id} rejected customer {customer.customer_id}"
        )
        return Admission.REJECTED

    def start_service(self, customer: Customer, now: float) -> float:
        """Begin service for a customer holding a seized server.

        Called when its SERVICE_START event is dispatched.

        Args:
            customer: Customer whose current stage is at this station
            now: Current simulation time

        Returns:
            Sampled service duration
        """
        record = customer.current_stage
        if record is None or record.resource_id != self.resource_id:
            raise RuntimeError(
                f"Customer {customer.customer_id} is not at station {self.resource_id}"
            )
        record.service_start_time = now
        duration = self.variates.sample(record.service_rate)
        self.scheduler.schedule(Event(
            time=now + duration,
            event_type=EventType.SERVICE_END,
            customer_id=customer.customer_id,
            resource_id=self.resource_id,
        ))
        return duration

    def release(self, now: float) -> Optional[Customer]:
        """Free one server and hand it to the head-of-line customer, if any.

        Args:
            now: Current simulation time

        Returns:
            The customer moved from the queue into service, or None
        """
        if self.state.busy_servers <= 0:
            raise RuntimeError(f"{self.resource_id}: release with no busy server")
        self.state.busy_servers -= 1
        self.completed += 1

        if not self._waiting:
            self._snapshot(now)
            return None

        customer = self._waiting.popleft()
        self.state.queue_length -= 1
        self._seize(customer, now)
        return customer

    def _seize(self, customer: Customer, now: float) -> None:
        # Reserve the server now; service begins when SERVICE_START is dispatched
        self.state.busy_servers += 1
        if self.state.busy_servers > self.capacity:
            raise RuntimeError(f"{self.resource_id}: busy servers exceed capacity")
        self._snapshot(now)
        self.scheduler.schedule(Event(
            time=now,
            event_type=EventType.SERVICE_START,
            customer_id=customer.customer_id,
            resource_id=self.resource_id,
        ))

    def _snapshot(self, now: float) -> None:
        self.occupancy.append(OccupancySample(
            resource=self.resource_id,
            time=now,
            queue_length=self.state.queue_length,
            busy_servers=self.state.busy_servers,
            capacity=self.capacity,
        ))

    def __repr__(self) -> str:
        return (f"ResourceModel({self.resource_id}, busy={self.state.busy_servers}/"
                f"{self.capacity}, queue={self.state.queue_length}/"
                f"{'inf' if self.queue_capacity is None else self.queue_capacity})")
