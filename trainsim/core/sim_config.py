"""Validated simulation configuration."""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .exceptions import ConfigError

WORKLOAD_TYPES = ("generated", "replay")

DEFAULT_RANGES = {
    'unload_time': (3.5, 4.5),
    'crew_remaining_shift': (6.0, 11.0),
    'crew_replacement_delay': (2.5, 3.5),
}


def parse_range(config: Dict, key: str) -> Tuple[float, float]:
    """Read a ``{min: a, max: b}`` range and check ``0 < a <= b``.

    Args:
        config: Section holding the range
        key: Name of the range inside the section

    Returns:
        (low, high) tuple
    """
    if key not in config:
        if key not in DEFAULT_RANGES:
            raise ConfigError(f"Missing range '{key}'")
        return DEFAULT_RANGES[key]
    bounds = config[key]
    try:
        if isinstance(bounds, dict):
            low, high = float(bounds['min']), float(bounds['max'])
        else:
            low, high = (float(v) for v in bounds)
    except (KeyError, TypeError, ValueError):
        raise ConfigError(f"Range '{key}' must provide numeric min and max, got {bounds!r}") from None

    if not (math.isfinite(low) and math.isfinite(high)):
        raise ConfigError(f"Range '{key}' must be finite, got [{low}, {high}]")
    if low <= 0:
        raise ConfigError(f"Range '{key}' must be positive, got min={low}")
    if low > high:
        raise ConfigError(f"Range '{key}' is empty: min={low} > max={high}")
    return low, high


@dataclass
class SimulationConfig:
    """Typed view over the simulation configuration dictionary.

    All checks happen here so that a bad configuration fails before the
    first event is dispatched.
    """

    # Simulation control
    horizon: float
    random_seed: Optional[int]
    max_events: Optional[int]
    replications: int
    confidence_level: float

    # Workload
    workload_type: str
    mean_interarrival: float
    unload_time_range: Tuple[float, float]
    crew_remaining_shift_range: Tuple[float, float]
    crew_replacement_delay_range: Tuple[float, float]
    schedule_path: Optional[str]
    crew_path: Optional[str]
    absolute_arrival_times: bool

    # Crew
    shift_length: float

    # Metrics
    percentiles: List[float]
    histogram_cap: int

    def __init__(self, config: Dict, require_replay_paths: bool = True):
        """Initialize from configuration dictionary.

        Args:
            config: Configuration dictionary
            require_replay_paths: Whether replay mode must name its input
                files (False when a value source is injected directly)
        """
        simulation = config.get('simulation', {}) or {}
        workload = config.get('workload', {}) or {}
        crew = config.get('crew', {}) or {}
        metrics = config.get('metrics', {}) or {}

        self.horizon = float(simulation.get('horizon', 72000.0))
        seed = simulation.get('random_seed', 42)
        self.random_seed = None if seed is None else int(seed)
        max_events = simulation.get('max_events')
        self.max_events = None if max_events is None else int(max_events)
        self.replications = int(simulation.get('replications', 1))
        self.confidence_level = float(simulation.get('confidence_level', 0.95))

        self.workload_type = workload.get('type', 'generated')
        self.mean_interarrival = float(workload.get('mean_interarrival', 10.0))
        self.unload_time_range = parse_range(workload, 'unload_time')
        self.crew_remaining_shift_range = parse_range(workload, 'crew_remaining_shift')
        self.crew_replacement_delay_range = parse_range(workload, 'crew_replacement_delay')
        self.schedule_path = workload.get('schedule_path')
        self.crew_path = workload.get('crew_path')
        self.absolute_arrival_times = bool(workload.get('absolute_arrival_times', False))

        self.shift_length = float(crew.get('shift_length', 12.0))

        self.percentiles = [float(p) for p in metrics.get('percentiles', [50, 90, 95, 99])]
        self.histogram_cap = int(metrics.get('histogram_cap', 100))

        self._validate(require_replay_paths)

    def _validate(self, require_replay_paths: bool) -> None:
        if not self.horizon > 0:
            raise ConfigError(f"Simulation horizon must be positive, got {self.horizon}")
        if self.max_events is not None and self.max_events <= 0:
            raise ConfigError(f"max_events must be positive, got {self.max_events}")
        if self.replications < 1:
            raise ConfigError(f"replications must be at least 1, got {self.replications}")
        if not 0.0 < self.confidence_level < 1.0:
            raise ConfigError(
                f"confidence_level must lie in (0, 1), got {self.confidence_level}"
            )

        if self.workload_type not in WORKLOAD_TYPES:
            raise ConfigError(
                f"Unknown workload type: {self.workload_type} (expected one of {WORKLOAD_TYPES})"
            )
        if not (self.mean_interarrival > 0 and math.isfinite(self.mean_interarrival)):
            raise ConfigError(
                f"mean_interarrival must be positive, got {self.mean_interarrival}"
            )
        if require_replay_paths and self.workload_type == 'replay':
            if not self.schedule_path or not self.crew_path:
                raise ConfigError("Replay workload requires schedule_path and crew_path")

        if not self.shift_length > 0:
            raise ConfigError(f"shift_length must be positive, got {self.shift_length}")
        if self.crew_replacement_delay_range[1] >= self.shift_length:
            raise ConfigError(
                "crew_replacement_delay max must be shorter than the shift length "
                f"({self.crew_replacement_delay_range[1]} >= {self.shift_length})"
            )

        if self.histogram_cap < 0:
            raise ConfigError(f"histogram_cap must be non-negative, got {self.histogram_cap}")
        for p in self.percentiles:
            if not 0 <= p <= 100:
                raise ConfigError(f"Percentile out of range: {p}")

    @property
    def arrival_rate(self) -> float:
        """Trains per hour implied by the mean inter-arrival gap."""
        return 1.0 / self.mean_interarrival
