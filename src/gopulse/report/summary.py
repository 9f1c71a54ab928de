"""Post-run summary: statistics over a finished run and their text report."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gopulse.primitives.events import Status
from gopulse.render.styles import (
    SYMBOL_FAIL,
    SYMBOL_PASS,
    SYMBOL_SKIP,
    Palette,
    status_symbol,
)
from gopulse.render.text import ensure_reset, expand_tabs

if TYPE_CHECKING:
    from gopulse.primitives.model import PackageResult, Run, TestResult

INDENT_1 = "  "
INDENT_2 = "    "

MAX_FAILURE_LINES = 10
MAX_SKIP_LINES = 3


def format_duration(seconds: float) -> str:
    """Format seconds as ``HH:MM:SS.mmm``."""
    millis_total = int(max(0.0, seconds) * 1000)
    hours, rest = divmod(millis_total, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    secs, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"


def _test_count(package: PackageResult) -> int:
    return package.counts.finished


@dataclass
class Summary:
    packages: list[PackageResult] = field(default_factory=list)
    total_tests: int = 0
    passed_tests: int = 0
    failed_tests: int = 0
    skipped_tests: int = 0
    total_time: float = 0.0
    package_count: int = 0
    slow_threshold: float = 10.0
    failures: list[TestResult] = field(default_factory=list)
    skipped: list[TestResult] = field(default_factory=list)
    slow_tests: list[TestResult] = field(default_factory=list)
    fastest_package: PackageResult | None = None
    slowest_package: PackageResult | None = None
    most_tests_package: PackageResult | None = None

    @property
    def has_failures(self) -> bool:
        return self.failed_tests > 0


def compute_summary(run: Run, slow_threshold: float = 10.0, now: float | None = None) -> Summary:
    """Compute summary statistics for a run.

    Tests are visited package by package in first-seen order, so failures
    and skips group naturally and ties keep their encounter order.

    Args:
        run: The run to summarize, normally finished.
        slow_threshold: Seconds at or above which a test counts as slow.
        now: End time to assume if the run has not finished.
    """
    packages = run.iter_packages()
    if run.end_time is not None:
        total_time = run.duration
    elif now is not None:
        total_time = max(0.0, now - run.start_time)
    else:
        total_time = 0.0

    summary = Summary(
        packages=packages,
        total_time=total_time,
        package_count=len(packages),
        slow_threshold=slow_threshold,
    )

    slow: list[TestResult] = []
    for package in packages:
        for test in run.iter_tests(package):
            summary.total_tests += 1
            if test.status == Status.PASSED:
                summary.passed_tests += 1
            elif test.status == Status.FAILED:
                summary.failed_tests += 1
                summary.failures.append(test)
            elif test.status == Status.SKIPPED:
                summary.skipped_tests += 1
                summary.skipped.append(test)
            if test.elapsed >= slow_threshold:
                slow.append(test)

    summary.slow_tests = sorted(slow, key=lambda test: test.elapsed, reverse=True)

    if packages:
        fastest = slowest = most = packages[0]
        for package in packages:
            if package.elapsed < fastest.elapsed:
                fastest = package
            if package.elapsed > slowest.elapsed:
                slowest = package
            if _test_count(package) > _test_count(most):
                most = package
        summary.fastest_package = fastest
        summary.slowest_package = slowest
        summary.most_tests_package = most

    return summary


def _group_by_package(tests: list[TestResult]) -> dict[str, list[TestResult]]:
    groups: dict[str, list[TestResult]] = {}
    for test in tests:
        groups.setdefault(test.package, []).append(test)
    return groups


def _section_header(title: str) -> str:
    return f"{title}\n{'-' * len(title)}\n"


class SummaryFormatter:
    def __init__(
        self,
        width: int = 80,
        *,
        use_colors: bool | None = None,
        interrupted_icon: str = "heuristic",
    ) -> None:
        self.width = width if width > 0 else 80
        if use_colors is None:
            use_colors = sys.stdout.isatty()
        self.use_colors = use_colors
        self.palette = Palette(enabled=use_colors)
        self.interrupted_icon = interrupted_icon

    def format(self, summary: Summary) -> str:
        sections = []
        if summary.failures:
            sections.append(self.format_failures(summary.failures))
        if summary.skipped:
            sections.append(self.format_skipped(summary.skipped))
        if summary.slow_tests:
            sections.append(self.format_slow_tests(summary.slow_tests, summary.slow_threshold))
        sections.append(self.format_packages(summary.packages))
        sections.append(self.format_overall(summary))
        return "".join(section + "\n" for section in sections)

    def horizontal_line(self) -> str:
        return "-" * self.width

    def format_failures(self, failures: list[TestResult]) -> str:
        return self._format_grouped("FAILURES", failures, MAX_FAILURE_LINES)

    def format_skipped(self, skipped: list[TestResult]) -> str:
        return self._format_grouped("SKIPPED", skipped, MAX_SKIP_LINES)

    def _format_grouped(self, title: str, tests: list[TestResult], max_lines: int) -> str:
        result = _section_header(title)
        for index, (package, group) in enumerate(_group_by_package(tests).items()):
            if index > 0:
                result += "\n"
            result += package + "\n"
            for test in group:
                result += INDENT_1 + test.name + "\n"
                for line in test.output[:max_lines]:
                    result += INDENT_2 + ensure_reset(expand_tabs(line)) + "\n"
        return result + self.horizontal_line()

    def format_slow_tests(self, slow_tests: list[TestResult], threshold: float) -> str:
        result = _section_header(f"SLOW TESTS (>{threshold:g}s)")
        name_width = max(len(test.name) for test in slow_tests)
        for test in slow_tests:
            result += f"{test.name:<{name_width}}  {format_duration(test.elapsed)}\n"
            result += f"{INDENT_1}{test.package}\n"
        return result + self.horizontal_line()

    def _package_label(self, package: PackageResult) -> str:
        if package.status == Status.INTERRUPTED:
            # pad to line up with the "ok  \t" prefix of a finished package line
            label = f"  \t{package.name} [interrupted]"
        elif package.output:
            label = package.output
        else:
            label = package.name
        return expand_tabs(label)

    def format_packages(self, packages: list[PackageResult]) -> str:
        result = _section_header("PACKAGES")
        if not packages:
            return result + self.horizontal_line()

        labels = [self._package_label(package) for package in packages]
        label_width = max(len(label) for label in labels)
        passed_width = max(len(str(p.counts.passed)) for p in packages)
        failed_width = max(len(str(p.counts.failed)) for p in packages)
        skipped_width = max(len(str(p.counts.skipped)) for p in packages)
        elapsed_width = max(len(format_duration(p.elapsed)) for p in packages)
        palette = self.palette

        for package, label in zip(packages, labels, strict=True):
            symbol, shown = status_symbol(package.status, package.counts, self.interrupted_icon)
            style = palette.for_status(shown)
            icon = palette.paint(style, symbol) if style else symbol

            counts = package.counts
            if counts.finished > 0:
                passed = palette.count(
                    palette.passed, f"{SYMBOL_PASS} {counts.passed:>{passed_width}}", counts.passed
                )
                failed = palette.count(
                    palette.failed, f"{SYMBOL_FAIL} {counts.failed:>{failed_width}}", counts.failed
                )
                skipped = palette.count(
                    palette.skipped,
                    f"{SYMBOL_SKIP} {counts.skipped:>{skipped_width}}",
                    counts.skipped,
                )
                columns = f"{passed}  {failed}  {skipped}"
            else:
                columns = " " * (3 * 2 + 2 * 2 + passed_width + failed_width + skipped_width)

            elapsed = format_duration(package.elapsed)
            result += f"{icon} {label:<{label_width}}  {columns}  {elapsed:>{elapsed_width}}\n"

        return result + self.horizontal_line()

    def format_overall(self, summary: Summary) -> str:
        total = summary.total_tests

        def percent(value: int) -> float:
            return value / total * 100 if total else 0.0

        palette = self.palette
        pass_icon = palette.paint(palette.passed, SYMBOL_PASS)
        fail_icon = palette.paint(palette.failed, SYMBOL_FAIL)
        skip_icon = palette.paint(palette.skipped, SYMBOL_SKIP)

        result = _section_header("OVERALL RESULTS")
        result += f"Total tests:    {total}\n"
        result += (
            f"Passed:         {summary.passed_tests} {pass_icon} "
            f"({percent(summary.passed_tests):.1f}%)\n"
        )
        result += (
            f"Failed:         {summary.failed_tests} {fail_icon} "
            f"({percent(summary.failed_tests):.1f}%)\n"
        )
        result += (
            f"Skipped:        {summary.skipped_tests} {skip_icon} "
            f"({percent(summary.skipped_tests):.1f}%)\n"
        )
        result += f"Total time:     {format_duration(summary.total_time)}\n"
        result += f"Packages:       {summary.package_count}\n"
        return result + self.horizontal_line()


def format_summary(
    run: Run,
    *,
    width: int = 80,
    slow_threshold: float = 10.0,
    use_colors: bool | None = None,
    interrupted_icon: str = "heuristic",
) -> str:
    summary = compute_summary(run, slow_threshold)
    formatter = SummaryFormatter(width, use_colors=use_colors, interrupted_icon=interrupted_icon)
    return formatter.format(summary)
