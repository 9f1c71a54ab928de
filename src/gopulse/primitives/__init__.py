"""Primitives for reducing runner events: events, results model, collector."""

from .bus import Notification, NotificationBus, NotificationType
from .collector import Collector
from .events import Action, Status, TestEvent, parse_event
from .model import Counts, PackageResult, Run, State, TestResult

__all__ = [
    "Action",
    "Collector",
    "Counts",
    "Notification",
    "NotificationBus",
    "NotificationType",
    "PackageResult",
    "Run",
    "State",
    "Status",
    "TestEvent",
    "TestResult",
    "parse_event",
]
