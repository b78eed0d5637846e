"""Trains, the unloading dock and the train arena."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional

from .exceptions import SimulationError


class TrainStatus(Enum):
    """Lifecycle of a train in the system."""
    ARRIVED = "arrived"
    WAITING = "waiting"
    IN_SERVICE = "in_service"
    DEPARTED = "departed"


class CrewStatus(Enum):
    """Status of the crew currently assigned to a train."""
    ON_SHIFT = "on_shift"
    HOGGED_OUT = "hogged_out"


class DockStatus(Enum):
    """States of the single unloading dock."""
    IDLE = "idle"
    IDLE_HOGGED = "idle_hogged"
    BUSY = "busy"


@dataclass
class Train:
    """A train moving through the unloading facility.

    ``time_until_hogout`` and ``remaining_unload_time`` are working values
    that the handlers decrement as the crew works and the dock unloads.
    """
    train_id: int
    crew_id: int
    arrival_time: float
    unload_time: float
    time_until_hogout: float

    remaining_unload_time: float = field(init=False)
    queue_exit_time: float = field(init=False)
    dock_exit_time: Optional[float] = None
    crew_start_time: float = field(init=False)
    service_resume_time: Optional[float] = None

    hogout_count: int = 0
    train_status: TrainStatus = TrainStatus.ARRIVED
    crew_status: CrewStatus = CrewStatus.ON_SHIFT

    def __post_init__(self):
        self.remaining_unload_time = self.unload_time
        self.queue_exit_time = self.arrival_time
        self.crew_start_time = self.arrival_time

    @property
    def time_in_system(self) -> float:
        if self.dock_exit_time is None:
            raise SimulationError(f"Train {self.train_id} has not left the dock")
        return self.dock_exit_time - self.arrival_time

    @property
    def time_in_queue(self) -> float:
        return self.queue_exit_time - self.arrival_time

    def __repr__(self) -> str:
        return (f"Train(id={self.train_id}, crew={self.crew_id}, "
                f"status={self.train_status.value}, crew_status={self.crew_status.value})")


@dataclass
class Dock:
    """The single unloading dock and its time accumulators.

    ``occupant`` holds the id of the train at the dock; the dock is
    occupied exactly when its status is BUSY or IDLE_HOGGED.
    """
    status: DockStatus = DockStatus.IDLE
    occupant: Optional[int] = None
    idle_time: float = 0.0
    busy_time: float = 0.0
    idle_hogged_time: float = 0.0
    last_sample_time: float = 0.0

    def record_elapsed(self, now: float) -> None:
        """Attribute time since the last sample to the current status."""
        elapsed = now - self.last_sample_time
        if elapsed < 0:
            raise SimulationError(
                f"Dock sampled at {now} before previous sample {self.last_sample_time}"
            )
        if self.status is DockStatus.IDLE:
            self.idle_time += elapsed
        elif self.status is DockStatus.BUSY:
            self.busy_time += elapsed
        else:
            self.idle_hogged_time += elapsed
        self.last_sample_time = now

    @property
    def total_time(self) -> float:
        return self.idle_time + self.busy_time + self.idle_hogged_time


class TrainArena:
    """Stable-id store for trains referenced by pending events.

    Each scheduled event holds a reference count on its train. A departed
    train is dropped from the arena once no pending event refers to it.
    """

    def __init__(self):
        self._trains: Dict[int, Train] = {}
        self._pending: Dict[int, int] = {}
        self.released = 0

    def add(self, train: Train) -> None:
        if train.train_id in self._trains:
            raise SimulationError(f"Train {train.train_id} already registered")
        self._trains[train.train_id] = train
        self._pending[train.train_id] = 0

    def get(self, train_id: int) -> Train:
        try:
            return self._trains[train_id]
        except KeyError:
            raise SimulationError(f"Train {train_id} is not in the arena") from None

    def acquire(self, train_id: int) -> None:
        """Note that a newly scheduled event refers to ``train_id``."""
        self.get(train_id)
        self._pending[train_id] += 1

    def release(self, train_id: int) -> Train:
        """Note that an event for ``train_id`` left the event queue."""
        train = self.get(train_id)
        if self._pending[train_id] <= 0:
            raise SimulationError(f"Train {train_id} has no pending events to release")
        self._pending[train_id] -= 1
        return train

    def pending_events(self, train_id: int) -> int:
        return self._pending.get(train_id, 0)

    def dispose_if_drained(self, train_id: int) -> bool:
        """Drop a departed train with no pending events.

        Returns:
            True if the train was removed
        """
        train = self._trains.get(train_id)
        if train is None or train.train_status is not TrainStatus.DEPARTED:
            return False
        if self._pending[train_id] > 0:
            return False
        del self._trains[train_id]
        del self._pending[train_id]
        self.released += 1
        return True

    def __contains__(self, train_id: int) -> bool:
        return train_id in self._trains

    def __len__(self) -> int:
        return len(self._trains)

    def __iter__(self) -> Iterator[Train]:
        return iter(list(self._trains.values()))
