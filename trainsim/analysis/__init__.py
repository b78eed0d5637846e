"""Multi-run analysis of the dock simulation."""

from .replications import run_replications, confidence_interval

__all__ = ["run_replications", "confidence_interval"]
