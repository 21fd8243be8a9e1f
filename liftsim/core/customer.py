"""Customer entities and their per-stage timelines."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple


class CustomerStatus(Enum):
    """Lifecycle state of a customer at the end of a run."""
    IN_FLIGHT = "in_flight"
    COMPLETED = "completed"
    REJECTED = "rejected"


@dataclass
class StageRecord:
    """Timeline of one customer at one station."""
    resource_id: str
    queue_enter_time: float
    service_rate: float
    service_start_time: Optional[float] = None
    service_end_time: Optional[float] = None

    @property
    def wait_in_queue(self) -> Optional[float]:
        if self.service_start_time is None:
            return None
        return self.service_start_time - self.queue_enter_time

    @property
    def service_time(self) -> Optional[float]:
        if self.service_start_time is None or self.service_end_time is None:
            return None
        return self.service_end_time - self.service_start_time


@dataclass(frozen=True)
class CustomerRecord:
    """Immutable per-customer output row.

    Time metrics are None unless the customer completed every stage.
    """
    customer_id: int
    arrival_time: float
    status: CustomerStatus
    exit_time: Optional[float]
    rejected_at: Optional[str]
    activity_time: Optional[float]
    waiting_time: Optional[float]
    flow_time: Optional[float]
    stages: Tuple[StageRecord, ...] = ()

    @property
    def rejected(self) -> bool:
        return self.status is CustomerStatus.REJECTED


@dataclass
class Customer:
    """One simulated skier moving through the station chain."""
    customer_id: int
    arrival_time: float
    stage_history: List[StageRecord] = field(default_factory=list)
    stage_index: int = 0
    rejected: bool = False
    rejected_at: Optional[str] = None
    exit_time: Optional[float] = None

    @property
    def current_stage(self) -> Optional[StageRecord]:
        return self.stage_history[-1] if self.stage_history else None

    @property
    def status(self) -> CustomerStatus:
        if self.rejected:
            return CustomerStatus.REJECTED
        if self.exit_time is not None:
            return CustomerStatus.COMPLETED
        return CustomerStatus.IN_FLIGHT

    @property
    def activity_time(self) -> Optional[float]:
        """Total time in service over all stages (completed customers only)."""
        if self.status is not CustomerStatus.COMPLETED:
            return None
        return sum(record.service_time for record in self.stage_history)

    @property
    def flow_time(self) -> Optional[float]:
        if self.exit_time is None:
            return None
        return self.exit_time - self.arrival_time

    @property
    def waiting_time(self) -> Optional[float]:
        flow = self.flow_time
        activity = self.activity_time
        if flow is None or activity is None:
            return None
        return flow - activity

    def to_record(self) -> CustomerRecord:
        """Freeze the customer into an output record."""
        return CustomerRecord(
            customer_id=self.customer_id,
            arrival_time=self.arrival_time,
            status=self.status,
            exit_time=self.exit_time,
            rejected_at=self.rejected_at,
            activity_time=self.activity_time,
            waiting_time=self.waiting_time,
            flow_time=self.flow_time,
            stages=tuple(replace(record) for record in self.stage_history),
        )

    def __repr__(self) -> str:
        return (f"Customer(id={self.customer_id}, arrival={self.arrival_time:.3f}, "
                f"status={self.status.value})")
