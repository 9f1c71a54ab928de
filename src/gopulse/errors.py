"""Exception types raised outside the reducer core."""

from __future__ import annotations


class GopulseError(Exception):
    pass


class ConfigError(GopulseError, ValueError):
    pass


class DecodeError(GopulseError, ValueError):
    """A line could not be decoded into a test event."""

    def __init__(self, line: str, reason: str) -> None:
        self.line = line
        self.reason = reason
        super().__init__(f"not a test event ({reason}): {line[:80]!r}")
