"""Sources of the stochastic quantities that drive the simulation.

The simulator asks a value source for four numbers and never needs to
know where they come from:

- the gap until the next train arrives
- how long a train takes to unload
- how much of its shift the arriving crew has left
- how long a replacement crew takes to reach a hogged-out train

``GeneratedValueSource`` draws them from distributions,
``ReplayValueSource`` hands out pre-made values in order.
"""

import math
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

import numpy as np

from ..core.exceptions import ConfigError, SourceExhausted
from ..core.sim_config import parse_range
from ..utils.logger import setup_logger


@dataclass(frozen=True)
class TrainValues:
    """Values needed to create one train."""
    arrival_gap: float
    unload_time: float
    remaining_shift: float


class ValueSource(ABC):
    """Interface the simulator uses to obtain new randomness."""

    @abstractmethod
    def next_arrival_gap(self) -> float:
        """Time between the current arrival and the next one."""

    @abstractmethod
    def next_unload_duration(self) -> float:
        """Unload time of the next train."""

    @abstractmethod
    def next_crew_remaining_shift(self) -> float:
        """Remaining shift of the crew bringing in the next train."""

    @abstractmethod
    def next_crew_replacement_delay(self) -> float:
        """Travel time of a replacement crew."""

    def has_next_train(self) -> bool:
        """Whether another train can be created."""
        return True

    def admits_arrival(self, now: float, horizon: float) -> bool:
        """Whether the arrival chain continues past a train arriving at ``now``."""
        return now <= horizon and self.has_next_train()

    def next_train_values(self) -> TrainValues:
        """Draw the three per-train values in their canonical order."""
        return TrainValues(
            arrival_gap=self.next_arrival_gap(),
            unload_time=self.next_unload_duration(),
            remaining_shift=self.next_crew_remaining_shift(),
        )

    def check_shift_length(self, shift_length: float) -> None:
        """Reject sources whose crew values cannot fit in a shift."""


class GeneratedValueSource(ValueSource):
    """Draws values from an exponential and three uniform distributions."""

    def __init__(self, mean_interarrival: float,
                 unload_time_range: Tuple[float, float],
                 crew_remaining_shift_range: Tuple[float, float],
                 crew_replacement_delay_range: Tuple[float, float],
                 seed: Optional[int] = None):
        """Initialize generator.

        Args:
            mean_interarrival: Mean of the exponential inter-arrival gap
            unload_time_range: (min, max) unload duration
            crew_remaining_shift_range: (min, max) remaining shift of an arriving crew
            crew_replacement_delay_range: (min, max) replacement crew travel time
            seed: Seed for the random generator
        """
        if not (mean_interarrival > 0 and math.isfinite(mean_interarrival)):
            raise ConfigError(f"mean_interarrival must be positive, got {mean_interarrival}")
        for name, (low, high) in (("unload_time", unload_time_range),
                                  ("crew_remaining_shift", crew_remaining_shift_range),
                                  ("crew_replacement_delay", crew_replacement_delay_range)):
            if low <= 0 or low > high:
                raise ConfigError(f"Invalid {name} range: [{low}, {high}]")

        self.mean_interarrival = mean_interarrival
        self.unload_time_range = unload_time_range
        self.crew_remaining_shift_range = crew_remaining_shift_range
        self.crew_replacement_delay_range = crew_replacement_delay_range
        self.rng = np.random.default_rng(seed)

    def next_arrival_gap(self) -> float:
        return float(self.rng.exponential(self.mean_interarrival))

    def next_unload_duration(self) -> float:
        return float(self.rng.uniform(*self.unload_time_range))

    def next_crew_remaining_shift(self) -> float:
        return float(self.rng.uniform(*self.crew_remaining_shift_range))

    def next_crew_replacement_delay(self) -> float:
        return float(self.rng.uniform(*self.crew_replacement_delay_range))

    def check_shift_length(self, shift_length: float) -> None:
        if self.crew_replacement_delay_range[1] >= shift_length:
            raise ConfigError(
                f"Replacement delays up to {self.crew_replacement_delay_range[1]} "
                f"do not fit in a {shift_length} shift"
            )


class ReplayValueSource(ValueSource):
    """Hands out pre-made values in order.

    Train triples are split into three queues consumed by the matching
    queries, which the simulator always calls in gap, unload, shift order.
    Running dry raises ``SourceExhausted``.
    """

    def __init__(self, trains: Iterable[Sequence[float]], crew_delays: Iterable[float]):
        """Initialize replay source.

        Args:
            trains: Sequence of (arrival_gap, unload_time, remaining_shift)
            crew_delays: Sequence of replacement crew travel times

        Raises:
            ConfigError: If any entry is malformed or not positive
        """
        self.logger = setup_logger(self.__class__.__name__)
        self._gaps = deque()
        self._unloads = deque()
        self._shifts = deque()

        for index, entry in enumerate(trains):
            values = tuple(entry)
            if len(values) != 3:
                raise ConfigError(
                    f"Train entry {index} must have 3 values "
                    f"(arrival_gap, unload_time, remaining_shift), got {len(values)}"
                )
            gap, unload, shift = (float(v) for v in values)
            if not (gap >= 0 and math.isfinite(gap)):
                raise ConfigError(f"Train entry {index}: arrival gap must be non-negative, got {gap}")
            if not (unload > 0 and math.isfinite(unload)):
                raise ConfigError(f"Train entry {index}: unload time must be positive, got {unload}")
            if not (shift > 0 and math.isfinite(shift)):
                raise ConfigError(f"Train entry {index}: remaining shift must be positive, got {shift}")
            self._gaps.append(gap)
            self._unloads.append(unload)
            self._shifts.append(shift)

        if not self._gaps:
            raise ConfigError("Replay schedule contains no trains")

        self._delays = deque()
        for index, delay in enumerate(crew_delays):
            delay = float(delay)
            if not (delay > 0 and math.isfinite(delay)):
                raise ConfigError(f"Crew delay {index} must be positive, got {delay}")
            self._delays.append(delay)

        self.logger.info(
            f"Replay source loaded {len(self._gaps)} trains and {len(self._delays)} crew delays"
        )

    def _take(self, values: deque, what: str) -> float:
        if not values:
            raise SourceExhausted(f"No pre-made {what} left")
        return values.popleft()

    def next_arrival_gap(self) -> float:
        return self._take(self._gaps, "arrival gaps")

    def next_unload_duration(self) -> float:
        return self._take(self._unloads, "unload times")

    def next_crew_remaining_shift(self) -> float:
        return self._take(self._shifts, "crew shifts")

    def next_crew_replacement_delay(self) -> float:
        return self._take(self._delays, "crew replacement delays")

    def has_next_train(self) -> bool:
        return bool(self._gaps)

    def admits_arrival(self, now: float, horizon: float) -> bool:
        # A replayed schedule runs to its end regardless of the horizon
        return self.has_next_train()

    @property
    def trains_remaining(self) -> int:
        return len(self._gaps)

    @property
    def crew_delays_remaining(self) -> int:
        return len(self._delays)

    def check_shift_length(self, shift_length: float) -> None:
        for delay in self._delays:
            if delay >= shift_length:
                raise ConfigError(
                    f"Crew delay {delay} does not fit in a {shift_length} shift"
                )


def build_value_source(workload: Dict, seed: Optional[int] = None) -> ValueSource:
    """Create the value source described by a workload configuration.

    Args:
        workload: ``workload`` section of the configuration
        seed: Random seed for generated workloads

    Returns:
        Configured value source
    """
    from .trace_loader import ScheduleLoader

    workload_type = workload.get('type', 'generated')

    if workload_type == 'generated':
        return GeneratedValueSource(
            mean_interarrival=float(workload.get('mean_interarrival', 10.0)),
            unload_time_range=parse_range(workload, 'unload_time'),
            crew_remaining_shift_range=parse_range(workload, 'crew_remaining_shift'),
            crew_replacement_delay_range=parse_range(workload, 'crew_replacement_delay'),
            seed=seed,
        )
    elif workload_type == 'replay':
        schedule_path = workload.get('schedule_path')
        crew_path = workload.get('crew_path')
        if not schedule_path or not crew_path:
            raise ConfigError("Replay workload requires schedule_path and crew_path")
        trains = ScheduleLoader(schedule_path).load_trains(
            absolute_times=bool(workload.get('absolute_arrival_times', False))
        )
        delays = ScheduleLoader(crew_path).load_crew_delays()
        return ReplayValueSource(
            [(t.arrival_gap, t.unload_time, t.remaining_shift) for t in trains],
            delays,
        )
    else:
        raise ConfigError(f"Unknown workload type: {workload_type}")
