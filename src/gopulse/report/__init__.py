"""Post-run reporting."""

from .summary import Summary, SummaryFormatter, compute_summary, format_duration, format_summary

__all__ = [
    "Summary",
    "SummaryFormatter",
    "compute_summary",
    "format_duration",
    "format_summary",
]
