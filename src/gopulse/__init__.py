"""gopulse: live view and summary for streamed test-runner JSON events."""

__version__ = "0.1.0"

from .primitives import (  # noqa: E402
    Action,
    Collector,
    Counts,
    PackageResult,
    Run,
    State,
    Status,
    TestEvent,
    TestResult,
    parse_event,
)
from .render import Renderer, render  # noqa: E402
from .report import SummaryFormatter, compute_summary, format_summary  # noqa: E402

__all__ = [
    "Action",
    "Collector",
    "Counts",
    "PackageResult",
    "Renderer",
    "Run",
    "State",
    "Status",
    "SummaryFormatter",
    "TestEvent",
    "TestResult",
    "compute_summary",
    "format_summary",
    "parse_event",
    "render",
]
