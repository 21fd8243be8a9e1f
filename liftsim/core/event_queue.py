"""Event queue implementation for discrete event simulation."""

import heapq
import itertools
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


class EventType(Enum):
    """Types of events in the simulation."""
    ARRIVAL = "arrival"
    SERVICE_START = "service_start"
    SERVICE_END = "service_end"


@dataclass(frozen=True)
class Event:
    """Event in the discrete event simulation.

    Attributes:
        time: Event timestamp
        event_type: Type of event
        customer_id: Customer the event belongs to
        resource_id: Station the event concerns (None for arrivals)
    """
    time: float
    event_type: EventType
    customer_id: int
    resource_id: Optional[str] = None

    def __post_init__(self):
        """Validate event after initialization."""
        if self.time < 0:
            raise ValueError("Event time cannot be negative")

    def as_tuple(self) -> Tuple[float, str, int, Optional[str]]:
        """Plain representation used for event logs and exports."""
        return (self.time, self.event_type.value, self.customer_id, self.resource_id)


class EventQueue:
    """Priority queue for managing simulation events.

    Events are ordered by time, with earlier events processed first.
    Events at the same time come out in insertion order.
    """

    def __init__(self):
        """Initialize empty event queue."""
        self._queue: List[Tuple[float, int, Event]] = []
        self._counter = itertools.count()

    def push(self, event: Event) -> None:
        """Add event to the queue.

        Args:
            event: Event to add
        """
        heapq.heappush(self._queue, (event.time, next(self._counter), event))

    def pop(self) -> Event:
        """Remove and return the next event.

        Returns:
            Next event to process

        Raises:
            IndexError: If queue is empty
        """
        if self.is_empty():
            raise IndexError("Cannot pop from empty event queue")
        return heapq.heappop(self._queue)[2]

    def peek(self) -> Optional[Event]:
        """Return the next event without removing it.

        Returns:
            Next event, or None if queue is empty
        """
        return self._queue[0][2] if self._queue else None

    def is_empty(self) -> bool:
        """Check if queue is empty."""
        return len(self._queue) == 0

    def size(self) -> int:
        """Get number of events in queue."""
        return len(self._queue)

    def clear(self) -> None:
        """Remove all events from queue."""
        self._queue.clear()

    def __len__(self) -> int:
        return len(self._queue)

    def __repr__(self) -> str:
        """String representation of event queue."""
        return f"EventQueue(size={len(self._queue)}, next={self.peek()})"
