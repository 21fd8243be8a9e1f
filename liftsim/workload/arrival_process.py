"""Poisson arrival process feeding the first station."""

from typing import List

from ..core.customer import Customer
from ..core.event_queue import Event, EventType
from ..core.errors import InvalidParameter
from ..utils.logger import setup_logger
from .random_variates import RandomVariateSource


class ArrivalGenerator:
    """Creates customers at exponentially distributed intervals.

    Arrival times are generated up front for the whole horizon; each one
    becomes a Customer and an ARRIVAL event.
    """

    def __init__(self, rate: float, variates: RandomVariateSource):
        """Initialize arrival generator.

        Args:
            rate: Arrival rate (customers per time unit, >= 0)
            variates: Source for interarrival gaps
        """
        if rate is None or rate < 0:
            raise InvalidParameter(f"Arrival rate must be >= 0, got {rate!r}")
        self.rate = rate
        self.variates = variates
        self.logger = setup_logger(self.__class__.__name__)

    def generate_arrivals(self, start_time: float, end_time: float) -> List[float]:
        """Generate Poisson arrival times.

        Args:
            start_time: Start time
            end_time: Last admissible arrival time (inclusive)

        Returns:
            Sorted list of arrival times
        """
        arrivals = []
        if self.rate == 0:
            return arrivals

        current_time = start_time
        while True:
            current_time += self.variates.sample(self.rate)
            if current_time > end_time:
                break
            arrivals.append(current_time)

        return arrivals

    def inject(self, scheduler, executor, horizon: float) -> List[Customer]:
        """Create customers for the horizon and schedule their ARRIVAL events.

        Args:
            scheduler: EventScheduler receiving the events
            executor: TrajectoryExecutor that will own the customers
            horizon: Simulation horizon

        Returns:
            The customers, in arrival order
        """
        customers = []
        for customer_id, arrival_time in enumerate(
                self.generate_arrivals(scheduler.now, horizon), start=1):
            customer = Customer(customer_id=customer_id, arrival_time=arrival_time)
            executor.register(customer)
            scheduler.schedule(Event(
                time=arrival_time,
                event_type=EventType.ARRIVAL,
                customer_id=customer_id,
            ))
            customers.append(customer)

        self.logger.info(f"Generated {len(customers)} arrivals up to t={horizon}")
        return customers
