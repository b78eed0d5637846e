"""Event queue implementation for discrete event simulation."""

import heapq
from enum import Enum
from dataclasses import dataclass
from typing import List, Optional, Tuple


class EventType(Enum):
    """Types of events in the simulation."""
    ARRIVAL = "arrival"
    DEPARTURE = "departure"
    HOGOUT = "hogout"
    CREW_REPLACEMENT = "crew_replacement"


@dataclass(frozen=True)
class Event:
    """Event in the discrete event simulation.

    Events refer to trains by id only; the simulator resolves the id
    through its train arena when the event is dispatched.

    Attributes:
        time: Scheduled logical time
        event_type: Type of event
        train_id: Target train
        crew_id: Crew on the train when the event was scheduled
    """
    time: float
    event_type: EventType
    train_id: int
    crew_id: int

    def __post_init__(self):
        """Validate event after initialization."""
        if self.time < 0:
            raise ValueError("Event time cannot be negative")


class EventQueue:
    """Priority queue for managing simulation events.

    Events are ordered by time, with earlier events processed first.
    Events scheduled for the same time come out in insertion order.
    """

    def __init__(self):
        """Initialize empty event queue."""
        self._queue: List[Tuple[float, int, Event]] = []
        self._event_count = 0

    def push(self, event: Event) -> None:
        """Add event to the queue.

        Args:
            event: Event to add
        """
        heapq.heappush(self._queue, (event.time, self._event_count, event))
        self._event_count += 1

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

    @property
    def total_scheduled(self) -> int:
        """Number of events pushed since creation."""
        return self._event_count

    def __len__(self) -> int:
        """Get number of events in queue."""
        return len(self._queue)

    def __repr__(self) -> str:
        """String representation of event queue."""
        return f"EventQueue(size={len(self._queue)}, next={self.peek()})"
