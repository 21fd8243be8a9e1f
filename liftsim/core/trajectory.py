"""Seize -> hold -> release trajectories across a chain of stations."""

from dataclasses import dataclass
from typing import Dict, List, Sequence

from .customer import Customer
from .errors import InvalidParameter
from .event_queue import Event
from .resource import Admission, ResourceModel
from ..utils.logger import setup_logger


@dataclass(frozen=True)
class Stage:
    """One step of a trajectory: the station and the service rate used there."""
    resource_id: str
    service_rate: float


class TrajectoryExecutor:
    """Moves customers through an ordered list of stages.

    A customer holds its server at stage k until the SERVICE_END event of
    that stage fires; only then is the server released and stage k+1 tried.
    A rejection at any stage ends the trajectory.
    """

    def __init__(self, stages: Sequence[Stage], resources: Dict[str, ResourceModel]):
        """Initialize the executor.

        Args:
            stages: Ordered stages every customer visits
            resources: Stations keyed by resource id
        """
        if not stages:
            raise InvalidParameter("A trajectory needs at least one stage")
        missing = [s.resource_id for s in stages if s.resource_id not in resources]
        if missing:
            raise InvalidParameter(f"Stages reference unknown stations: {missing}")

        self.stages: List[Stage] = list(stages)
        self.resources = resources
        self.customers: Dict[int, Customer] = {}
        self.logger = setup_logger(self.__class__.__name__)

        # Statistics
        self.completed = 0
        self.rejected = 0

    def register(self, customer: Customer) -> None:
        """Make a customer known before its ARRIVAL event is dispatched."""
        self.customers[customer.customer_id] = customer

    def on_arrival(self, event: Event) -> None:
        """Handle ARRIVAL: enter the first stage."""
        customer = self.customers[event.customer_id]
        self._enter_stage(customer, 0, event.time)

    def on_service_start(self, event: Event) -> None:
        """Handle SERVICE_START: sample the hold time at the current station."""
        customer = self.customers[event.customer_id]
        self.resources[event.resource_id].start_service(customer, event.time)

    def on_service_end(self, event: Event) -> None:
        """Handle SERVICE_END: release the station, then advance or complete."""
        now = event.time
        customer = self.customers[event.customer_id]
        record = customer.current_stage
        record.service_end_time = now

        self.resources[event.resource_id].release(now)

        next_index = customer.stage_index + 1
        if next_index < len(self.stages):
            self._enter_stage(customer, next_index, now)
        else:
            customer.exit_time = now
            self.completed += 1
            self.logger.debug(
                f"t={now:.3f} customer {customer.customer_id} exited "
                f"(flow={customer.flow_time:.3f})"
            )

    def _enter_stage(self, customer: Customer, index: int, now: float) -> Admission:
        stage = self.stages[index]
        customer.stage_index = index
        outcome = self.resources[stage.resource_id].try_enqueue(
            customer, now, stage.service_rate
        )
        if outcome is Admission.REJECTED:
            self.rejected += 1
        return outcome
