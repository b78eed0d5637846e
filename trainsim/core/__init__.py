"""Core simulation components."""

from .simulator import Simulator
from .event_queue import Event, EventType, EventQueue
from .entities import Train, Dock, TrainArena, TrainStatus, CrewStatus, DockStatus
from .metrics_collector import MetricsCollector
from .sim_config import SimulationConfig
from .exceptions import ConfigError, SimulationError, SourceExhausted

__all__ = [
    "Simulator",
    "Event",
    "EventType",
    "EventQueue",
    "Train",
    "Dock",
    "TrainArena",
    "TrainStatus",
    "CrewStatus",
    "DockStatus",
    "MetricsCollector",
    "SimulationConfig",
    "ConfigError",
    "SimulationError",
    "SourceExhausted",
]
