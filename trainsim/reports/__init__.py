"""Report formatting and result files."""

from .report_generator import format_statistics, save_results

__all__ = ["format_statistics", "save_results"]
