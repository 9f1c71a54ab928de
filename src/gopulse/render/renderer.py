"""Height-budgeted live view of a run.

Every package gets a header line and the run gets a separator and a
summary line; those are fixed. Whatever height remains is shared among
the tests of packages that are still open (running or interrupted):

1. each test becomes a candidate item: one header line, plus up to
   ``max_output_lines`` recent output lines while the test is running;
2. items are bucketed by priority (running, then failed, then the rest)
   and sorted newest-first inside a bucket;
3. the budget is granted greedily, bucket by bucket: an item gets its full
   line count if it fits, otherwise whatever is left, and nothing once the
   budget is spent.

Rendering reads the run and never mutates it.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gopulse.config import Settings
from gopulse.primitives.events import Status

from .styles import (
    SYMBOL_FAIL,
    SYMBOL_PASS,
    SYMBOL_PAUSED,
    SYMBOL_SKIP,
    Palette,
    SpinnerFrames,
    status_symbol,
)
from .text import RESET, ensure_reset, expand_tabs, format_elapsed, truncate_cells, visible_width

if TYPE_CHECKING:
    from gopulse.primitives.model import PackageResult, Run, State, TestResult

PRIORITY_RUNNING = 1
PRIORITY_FAILED = 2
PRIORITY_DONE = 3

BODY_INDENT = "      "

_RUN_STATUS_WORDS = {
    Status.RUNNING: "RUNNING",
    Status.PASSED: "PASSED",
    Status.FAILED: "FAILED",
    Status.INTERRUPTED: "INTERRUPTED",
}


@dataclass(frozen=True)
class RenderItem:
    package: str
    test: str
    line_count: int
    priority: int
    start_time: float


@dataclass(frozen=True)
class ColumnWidths:
    passed: int = 1
    failed: int = 1
    skipped: int = 1
    elapsed: int = 4


def item_priority(test: TestResult) -> int:
    if test.status in (Status.RUNNING, Status.PAUSED):
        return PRIORITY_RUNNING
    if test.status == Status.FAILED:
        return PRIORITY_FAILED
    return PRIORITY_DONE


def allocate_lines(items: list[RenderItem], available: int) -> dict[tuple[str, str], int]:
    """Grant line budgets to items by priority bucket, newest first."""
    grants: dict[tuple[str, str], int] = {}
    for priority in (PRIORITY_RUNNING, PRIORITY_FAILED, PRIORITY_DONE):
        bucket = [item for item in items if item.priority == priority]
        bucket.sort(key=lambda item: item.start_time, reverse=True)
        for item in bucket:
            if available >= item.line_count:
                grants[(item.package, item.test)] = item.line_count
                available -= item.line_count
            elif available > 0:
                grants[(item.package, item.test)] = available
                available = 0
    return grants


def expandable(package: PackageResult) -> bool:
    return package.status in (Status.RUNNING, Status.INTERRUPTED)


class Renderer:
    def __init__(self, settings: Settings | None = None, *, palette: Palette | None = None) -> None:
        self.settings = settings or Settings()
        self.palette = palette or Palette()
        self.spinner = SpinnerFrames(self.settings.spinner)

    @property
    def max_output_lines(self) -> int:
        return self.settings.max_output_lines

    def render_state(
        self,
        state: State,
        width: int,
        height: int,
        replay_rate: float = 1.0,
        now: float | None = None,
    ) -> str:
        run = state.latest_run
        if run is None:
            return ""
        return self.render(run, width, height, replay_rate, now)

    def render(
        self,
        run: Run,
        width: int,
        height: int,
        replay_rate: float = 1.0,
        now: float | None = None,
    ) -> str:
        now = time.time() if now is None else now
        width = max(0, width)
        packages = run.iter_packages()

        structural = 1 + len(packages) + (1 if packages else 0)
        non_test = self._visible_non_test_output(run, height - structural)
        fixed = structural + len(non_test) + (1 if non_test else 0)
        available = max(0, height - fixed)

        lines: list[str] = []
        for line in non_test:
            lines.append(ensure_reset(truncate_cells("  " + line, width)))
        if non_test:
            lines.append("")

        widths = self._column_widths(packages, replay_rate, now)
        grants = allocate_lines(self.build_items(run), available)

        for package in packages:
            lines.append(self._package_header(package, widths, width, replay_rate, now))
            if not expandable(package):
                continue
            for test in run.iter_tests(package):
                granted = grants.get((package.name, test.name), 0)
                if granted > 0:
                    lines.extend(self._test_lines(test, granted, width, replay_rate, now))

        if packages:
            lines.append(ensure_reset("-" * width))
        lines.append(self._summary_line(run, width, replay_rate, now))

        while lines and not lines[-1]:
            lines.pop()
        return "\n".join(lines)

    def build_items(self, run: Run) -> list[RenderItem]:
        items: list[RenderItem] = []
        for package in run.iter_packages():
            if not expandable(package):
                continue
            for test in run.iter_tests(package):
                line_count = 1
                if test.running:
                    line_count += min(len(test.output), self.max_output_lines)
                items.append(
                    RenderItem(
                        package=package.name,
                        test=test.name,
                        line_count=line_count,
                        priority=item_priority(test),
                        start_time=test.start_time,
                    )
                )
        return items

    def package_elapsed(self, package: PackageResult, replay_rate: float, now: float) -> float:
        if package.status == Status.RUNNING:
            return _scaled(now - package.wall_start_time, replay_rate)
        return package.elapsed

    def test_elapsed(self, test: TestResult, replay_rate: float, now: float) -> float:
        if test.status in (Status.RUNNING, Status.PAUSED):
            return _scaled(now - test.wall_start_time, replay_rate)
        return test.elapsed

    def run_elapsed(self, run: Run, replay_rate: float, now: float) -> float:
        if run.end_time is None:
            return _scaled(now - run.wall_start_time, replay_rate)
        return run.duration

    def _visible_non_test_output(self, run: Run, room: int) -> list[str]:
        lines = [expand_tabs(line) for line in run.non_test_output]
        if not lines or len(lines) + 1 <= room:
            return lines
        keep = room - 1
        if keep <= 0:
            return []
        return lines[-keep:]

    def _column_widths(
        self, packages: list[PackageResult], replay_rate: float, now: float
    ) -> ColumnWidths:
        if not packages:
            return ColumnWidths()
        return ColumnWidths(
            passed=max(len(str(p.counts.passed)) for p in packages),
            failed=max(len(str(p.counts.failed)) for p in packages),
            skipped=max(len(str(p.counts.skipped)) for p in packages),
            elapsed=max(
                len(format_elapsed(self.package_elapsed(p, replay_rate, now))) for p in packages
            ),
        )

    def _spinner_prefix(self, failed: bool, now: float) -> str:
        style = self.palette.failed if failed else self.palette.passed
        return self.palette.paint(style, self.spinner.frame(now)) + " "

    def _package_header(
        self,
        package: PackageResult,
        widths: ColumnWidths,
        width: int,
        replay_rate: float,
        now: float,
    ) -> str:
        counts = package.counts
        palette = self.palette
        passed = palette.count(
            palette.passed, f"{SYMBOL_PASS} {counts.passed:>{widths.passed}}", counts.passed
        )
        failed = palette.count(
            palette.failed, f"{SYMBOL_FAIL} {counts.failed:>{widths.failed}}", counts.failed
        )
        skipped = palette.count(
            palette.skipped, f"{SYMBOL_SKIP} {counts.skipped:>{widths.skipped}}", counts.skipped
        )
        elapsed = format_elapsed(self.package_elapsed(package, replay_rate, now))
        right = f"{passed}  {failed}  {skipped}  {elapsed:>{widths.elapsed}}"

        if package.running:
            left = palette.paint(palette.bold, package.name)
            right = palette.paint(palette.bold, right)
            prefix = self._spinner_prefix(counts.failed > 0, now)
        else:
            left = expand_tabs(package.output) if package.output else package.name
            symbol, shown = status_symbol(
                package.status, counts, self.settings.interrupted_icon
            )
            style = palette.for_status(shown)
            prefix = (palette.paint(style, symbol) if style else symbol) + " "
        return aligned_line(prefix, left, right, width)

    def _test_lines(
        self, test: TestResult, granted: int, width: int, replay_rate: float, now: float
    ) -> list[str]:
        summary = "  " + expand_tabs(test.summary_line or f"=== RUN   {test.name}")
        elapsed = format_elapsed(self.test_elapsed(test, replay_rate, now))

        if test.running:
            prefix = self._spinner_prefix(False, now)
            summary = self.palette.paint(self.palette.bold, summary)
            elapsed = self.palette.paint(self.palette.bold, elapsed)
        elif test.status == Status.PAUSED:
            prefix = SYMBOL_PAUSED + " "
        else:
            prefix = "  "

        lines = [aligned_line(prefix, summary, elapsed, width)]
        body_budget = granted - 1
        if test.running and body_budget > 0:
            shown = min(body_budget, self.max_output_lines, len(test.output))
            for line in test.output[len(test.output) - shown :]:
                body = BODY_INDENT + expand_tabs(line)
                lines.append(ensure_reset(truncate_cells(body, width)))
        return lines

    def _summary_line(self, run: Run, width: int, replay_rate: float, now: float) -> str:
        counts = run.counts
        word = _RUN_STATUS_WORDS.get(run.status, "UNKNOWN")
        left = (
            f"{word}: {counts.passed} passed, {counts.failed} failed, "
            f"{counts.skipped} skipped, {counts.running} running, {counts.total} total"
        )
        right = format_elapsed(self.run_elapsed(run, replay_rate, now))
        prefix = "  "
        if run.status == Status.RUNNING:
            prefix = self._spinner_prefix(counts.failed > 0, now)
            left = self.palette.paint(self.palette.bold, left)
            right = self.palette.paint(self.palette.bold, right)
        return aligned_line(prefix, left, right, width)


def aligned_line(prefix: str, left: str, right: str, width: int) -> str:
    """Lay out ``prefix + left`` flush left and ``right`` flush right.

    ``left`` is cut when it would collide with ``right``; ``right`` is kept
    whole behind a two-space gutter.
    """
    full_left = prefix + left
    if not right:
        return ensure_reset(truncate_cells(full_left, width))

    room = max(0, width - visible_width(right) - 2)
    left_width = visible_width(full_left)
    if left_width >= room:
        full_left = truncate_cells(full_left, room)
        padding = 0
    else:
        padding = room - left_width
    return ensure_reset(f"{full_left}{RESET}{' ' * padding}  {right}")


def _scaled(duration: float, replay_rate: float) -> float:
    if replay_rate <= 0:
        replay_rate = 1.0
    return max(0.0, duration) / replay_rate


def render(
    run: Run,
    width: int,
    height: int,
    replay_rate: float = 1.0,
    now: float | None = None,
    *,
    settings: Settings | None = None,
) -> str:
    return Renderer(settings).render(run, width, height, replay_rate, now)
