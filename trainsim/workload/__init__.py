"""Workload value sources and replay schedule loading."""

from .value_source import (
    ValueSource, GeneratedValueSource, ReplayValueSource, TrainValues, build_value_source
)
from .trace_loader import ScheduleLoader

__all__ = [
    "ValueSource",
    "GeneratedValueSource",
    "ReplayValueSource",
    "TrainValues",
    "build_value_source",
    "ScheduleLoader",
]
