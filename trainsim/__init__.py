"""TrainSim: Train Unloading Dock Simulator with Crew Hogouts."""

from .core.simulator import Simulator
from .core.event_queue import Event, EventType, EventQueue
from .core.metrics_collector import MetricsCollector
from .core.exceptions import ConfigError, SimulationError, SourceExhausted
from .workload.value_source import GeneratedValueSource, ReplayValueSource, ValueSource
from .utils.logger import setup_logger

__version__ = "0.1.0"
__all__ = [
    "Simulator",
    "Event",
    "EventType",
    "EventQueue",
    "MetricsCollector",
    "ConfigError",
    "SimulationError",
    "SourceExhausted",
    "GeneratedValueSource",
    "ReplayValueSource",
    "ValueSource",
    "setup_logger",
]
