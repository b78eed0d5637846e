"""Exceptions raised by the simulation core."""


class ConfigError(ValueError):
    """Invalid configuration or malformed replay input.

    Always raised before the driver loop starts.
    """


class SimulationError(RuntimeError):
    """An internal invariant was violated while processing events."""


class SourceExhausted(Exception):
    """A replay value source ran out of pre-made values.

    The driver loop treats this as the end of the run, not as a failure.
    """
