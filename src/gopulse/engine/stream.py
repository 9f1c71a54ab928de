"""Line source to event stream, through a bounded buffer.

The producer awaits on a full queue, which bounds memory at the cost of
stalling the upstream reader when the consumer falls behind.
"""

from __future__ import annotations

import asyncio
import contextlib
import io
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, TextIO

from gopulse.errors import DecodeError
from gopulse.logging import get_logger
from gopulse.primitives.events import TestEvent, parse_event

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

logger = get_logger(__name__)

DEFAULT_BUFFER_SIZE = 100


class EngineEventType(StrEnum):
    RAW = "raw"
    TEST = "test"
    ERROR = "error"
    COMPLETE = "complete"


@dataclass(frozen=True)
class EngineEvent:
    type: EngineEventType
    raw_line: str = ""
    test_event: TestEvent | None = None
    error: Exception | None = None


def lenient_text(stream: TextIO) -> TextIO:
    """Re-wrap a text stream so undecodable bytes become U+FFFD instead of raising.

    Streams without an underlying binary buffer are returned unchanged.
    """
    buffer = getattr(stream, "buffer", None)
    if buffer is None:
        return stream
    return io.TextIOWrapper(buffer, encoding="utf-8", errors="replace")


async def read_lines(file: TextIO) -> AsyncIterator[str]:
    """Yield lines from a blocking text file without blocking the loop."""
    while True:
        line = await asyncio.to_thread(file.readline)
        if not line:
            return
        yield line.rstrip("\n").rstrip("\r")


class Engine:
    def __init__(
        self,
        *,
        raw_sink: TextIO | None = None,
        json_sink: TextIO | None = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ) -> None:
        self.raw_sink = raw_sink
        self.json_sink = json_sink
        self.buffer_size = buffer_size

    def process_line(self, line: str) -> EngineEvent:
        if self.raw_sink is not None:
            self.raw_sink.write(line + "\n")
        try:
            event = parse_event(line)
        except DecodeError as exc:
            logger.debug("raw_line", reason=exc.reason)
            return EngineEvent(type=EngineEventType.RAW, raw_line=line)
        if self.json_sink is not None:
            self.json_sink.write(line + "\n")
        return EngineEvent(type=EngineEventType.TEST, test_event=event)

    async def stream(self, lines: AsyncIterable[str]) -> AsyncIterator[EngineEvent]:
        """Yield engine events for each line, ending with a COMPLETE event."""
        queue: asyncio.Queue[EngineEvent] = asyncio.Queue(maxsize=self.buffer_size)
        producer = asyncio.create_task(self._produce(lines, queue))
        try:
            while True:
                event = await queue.get()
                yield event
                if event.type == EngineEventType.COMPLETE:
                    break
        finally:
            if not producer.done():
                producer.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await producer

    async def _produce(self, lines: AsyncIterable[str], queue: asyncio.Queue[EngineEvent]) -> None:
        try:
            async for line in lines:
                await queue.put(self.process_line(line))
        except (OSError, ValueError) as exc:
            logger.warning("input_stream_error", error=str(exc))
            await queue.put(EngineEvent(type=EngineEventType.ERROR, error=exc))
        await queue.put(EngineEvent(type=EngineEventType.COMPLETE))
