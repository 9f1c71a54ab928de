"""Input side: turning text lines into events, live or replayed."""

from .replay import ReplayReader, TimedLine
from .stream import Engine, EngineEvent, EngineEventType, read_lines

__all__ = [
    "Engine",
    "EngineEvent",
    "EngineEventType",
    "ReplayReader",
    "TimedLine",
    "read_lines",
]
