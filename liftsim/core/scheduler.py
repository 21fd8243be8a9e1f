"""Discrete-event kernel: advances simulated time one event at a time."""

import math
from enum import Enum
from typing import Callable, Dict, List, Optional

from .event_queue import Event, EventQueue, EventType
from ..utils.logger import setup_logger

EventHandler = Callable[[Event], None]


class StopReason(Enum):
    """Why the event loop returned."""
    EXHAUSTED = "exhausted"
    HORIZON = "horizon"


class EventScheduler:
    """Single-threaded event loop over a time-ordered EventQueue.

    Handlers run to completion one at a time; the total ordering of
    (time, insertion order) makes a run deterministic for a fixed seed.
    """

    def __init__(self, record_log: bool = True):
        """Initialize the scheduler.

        Args:
            record_log: Keep every dispatched event in event_log
        """
        self.now = 0.0
        self.event_queue = EventQueue()
        self.event_log: List[Event] = []
        self.record_log = record_log
        self.dispatched = 0
        self._handlers: Dict[EventType, EventHandler] = {}
        self.logger = setup_logger(self.__class__.__name__)

    def register_handler(self, event_type: EventType, handler: EventHandler) -> None:
        """Route events of one type to a handler."""
        self._handlers[event_type] = handler

    def schedule(self, event: Event) -> None:
        """Insert an event.

        Args:
            event: Event to schedule

        Raises:
            ValueError: If the event lies before the current time
        """
        if event.time < self.now:
            raise ValueError(
                f"Cannot schedule {event.event_type.value} at t={event.time} "
                f"before current time t={self.now}"
            )
        self.event_queue.push(event)

    def next(self) -> Optional[Event]:
        """Remove the earliest event, advance the clock to it and return it.

        Returns:
            The event, or None when nothing is pending
        """
        if self.event_queue.is_empty():
            return None
        event = self.event_queue.pop()
        self.now = event.time
        if self.record_log:
            self.event_log.append(event)
        self.dispatched += 1
        return event

    def pending(self) -> int:
        return len(self.event_queue)

    def run(self, horizon: float = math.inf) -> StopReason:
        """Dispatch events until the queue empties or the horizon is passed.

        Events later than the horizon are left in the queue, so customers
        they belong to keep their partial state.

        Args:
            horizon: Last simulated time at which events are dispatched

        Returns:
            StopReason describing the termination
        """
        while True:
            upcoming = self.event_queue.peek()
            if upcoming is None:
                self.logger.debug(f"Event queue exhausted at t={self.now:.4f}")
                return StopReason.EXHAUSTED
            if upcoming.time > horizon:
                self.logger.debug(
                    f"Horizon {horizon} reached with {self.pending()} events pending"
                )
                return StopReason.HORIZON

            event = self.next()
            handler = self._handlers.get(event.event_type)
            if handler is None:
                raise KeyError(f"No handler registered for {event.event_type}")
            handler(event)

    def __repr__(self) -> str:
        return f"EventScheduler(now={self.now}, pending={self.pending()})"
