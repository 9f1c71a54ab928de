from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from gopulse.errors import DecodeError
from gopulse.primitives.events import parse_event

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterable


@dataclass(frozen=True)
class TimedLine:
    line: str
    timestamp: float
    is_event: bool


class ReplayReader:
    """Re-emit recorded lines with the gaps between their event timestamps.

    ``rate`` scales the gaps: 1 is original speed, 0.5 twice as fast, and
    0 replays instantly. Lines without a timestamp inherit the previous one.
    """

    def __init__(
        self,
        lines: Iterable[str],
        rate: float = 1.0,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        if rate < 0:
            msg = f"replay rate must be >= 0, got {rate}"
            raise ValueError(msg)
        self.rate = rate
        self._sleep = sleep
        self.lines: list[TimedLine] = []
        previous = 0.0
        for raw in lines:
            line = raw.rstrip("\n").rstrip("\r")
            try:
                event = parse_event(line)
            except DecodeError:
                event = None
            if event is not None and event.time > 0:
                self.lines.append(TimedLine(line, event.time, is_event=True))
                previous = event.time
            else:
                self.lines.append(TimedLine(line, previous, is_event=False))

    @classmethod
    def from_file(cls, path: str | Path, rate: float = 1.0) -> ReplayReader:
        with Path(path).open(encoding="utf-8", errors="replace") as handle:
            return cls(handle, rate)

    def delays(self) -> list[float]:
        """Seconds to wait before emitting each line."""
        delays: list[float] = []
        last = 0.0
        for index, timed in enumerate(self.lines):
            delay = 0.0
            if index > 0 and self.rate > 0 and last > 0 and timed.timestamp > 0:
                gap = timed.timestamp - last
                if gap > 0:
                    delay = gap * self.rate
            delays.append(delay)
            if timed.timestamp > 0:
                last = timed.timestamp
        return delays

    async def __aiter__(self) -> AsyncIterator[str]:
        for timed, delay in zip(self.lines, self.delays(), strict=True):
            if delay > 0:
                await self._sleep(delay)
            yield timed.line
