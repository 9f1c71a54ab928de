from __future__ import annotations

from dataclasses import dataclass, field

from rich.color import ColorSystem
from rich.spinner import Spinner
from rich.style import Style

from gopulse.primitives.events import Status
from gopulse.primitives.model import Counts

SYMBOL_PASS = "✓"
SYMBOL_FAIL = "✗"
SYMBOL_SKIP = "∅"
SYMBOL_INTERRUPTED = "⚠"
SYMBOL_PAUSED = "="


@dataclass(frozen=True)
class Palette:
    """SGR styles rendered to explicit escape sequences (standard 16-color)."""

    enabled: bool = True
    passed: Style = field(default_factory=lambda: Style(color="green"))
    failed: Style = field(default_factory=lambda: Style(color="red"))
    skipped: Style = field(default_factory=lambda: Style(color="yellow"))
    bold: Style = field(default_factory=lambda: Style(bold=True))

    def paint(self, style: Style, text: str) -> str:
        if not self.enabled or not text:
            return text
        return style.render(text, color_system=ColorSystem.STANDARD)

    def for_status(self, status: Status) -> Style | None:
        if status == Status.PASSED:
            return self.passed
        if status == Status.FAILED:
            return self.failed
        if status in (Status.SKIPPED, Status.INTERRUPTED):
            return self.skipped
        return None

    def count(self, style: Style, text: str, value: int) -> str:
        """Color a count column only when it is non-zero."""
        return self.paint(style, text) if value > 0 else text


class SpinnerFrames:
    """Spinner whose frame is a pure function of the clock."""

    def __init__(self, name: str = "dots") -> None:
        spinner = Spinner(name)
        self.frames: list[str] = list(spinner.frames)
        self.interval: float = spinner.interval / 1000.0

    def frame(self, now: float) -> str:
        return self.frames[int(now / self.interval) % len(self.frames)]


def interrupted_symbol(counts: Counts, policy: str = "heuristic") -> tuple[str, Status]:
    """Pick an icon for a package that was cut off before reporting.

    The heuristic reads the partial results: any failure looks failed, no
    finished test looks skipped, anything else looks passed.
    """
    if policy == "interrupted":
        return SYMBOL_INTERRUPTED, Status.INTERRUPTED
    if counts.failed > 0:
        return SYMBOL_FAIL, Status.FAILED
    if counts.passed == 0 and counts.failed == 0:
        return SYMBOL_SKIP, Status.SKIPPED
    return SYMBOL_PASS, Status.PASSED


def status_symbol(status: Status, counts: Counts, policy: str = "heuristic") -> tuple[str, Status]:
    if status == Status.PASSED:
        return SYMBOL_PASS, status
    if status == Status.FAILED:
        return SYMBOL_FAIL, status
    if status == Status.SKIPPED:
        return SYMBOL_SKIP, status
    if status == Status.INTERRUPTED:
        return interrupted_symbol(counts, policy)
    if status == Status.PAUSED:
        return SYMBOL_PAUSED, status
    return " ", status
