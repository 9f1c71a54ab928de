"""Consumer loop tying the event stream, the collector and the live view.

Frames are redrawn on a fixed tick (timers and spinner keep moving with
no input) and after consumed events that changed state, at most once per
tick interval.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import TYPE_CHECKING

from rich.text import Text

from gopulse.engine.stream import EngineEventType
from gopulse.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from rich.live import Live

    from gopulse.config import Settings
    from gopulse.engine.stream import EngineEvent
    from gopulse.primitives.bus import Notification
    from gopulse.primitives.collector import Collector
    from gopulse.render.renderer import Renderer

logger = get_logger(__name__)


class LiveDriver:
    def __init__(
        self,
        collector: Collector,
        renderer: Renderer,
        live: Live,
        settings: Settings,
    ) -> None:
        self.collector = collector
        self.renderer = renderer
        self.live = live
        self.settings = settings
        self._dirty = False
        self._last_refresh = 0.0
        collector.subscribe(self._on_change)

    @property
    def replay_rate(self) -> float:
        return self.settings.replay_rate if self.settings.replay else 1.0

    def _on_change(self, notification: Notification) -> None:
        self._dirty = True

    def frame(self) -> str:
        width, height = self.live.console.size
        return self.renderer.render_state(self.collector.state, width, height, self.replay_rate)

    def refresh(self) -> None:
        self._dirty = False
        self._last_refresh = time.monotonic()
        self.live.update(Text.from_ansi(self.frame(), no_wrap=True, overflow="crop"), refresh=True)

    async def consume(self, events: AsyncIterator[EngineEvent]) -> None:
        ticker = asyncio.create_task(self._tick())
        try:
            async for event in events:
                if event.type == EngineEventType.TEST and event.test_event is not None:
                    self.collector.push(event.test_event)
                elif event.type == EngineEventType.RAW:
                    self.live.console.print(Text.from_ansi(event.raw_line), soft_wrap=True)
                elif event.type == EngineEventType.ERROR:
                    logger.warning("input_error", error=str(event.error))
                elif event.type == EngineEventType.COMPLETE:
                    break
                if self._due():
                    self.refresh()
        finally:
            ticker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await ticker
        self.collector.finish()
        self.refresh()

    async def _tick(self) -> None:
        while True:
            self.refresh()
            await asyncio.sleep(self.settings.tick_interval)

    def _due(self) -> bool:
        elapsed = time.monotonic() - self._last_refresh
        return self._dirty and elapsed >= self.settings.tick_interval
