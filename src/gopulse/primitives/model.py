"""In-memory results model reconstructed from the event stream.

The collector is the only writer. Everything here is plain mutable
dataclasses so that renderers can read a run without copying it.

Field policies:
    PackageResult.output   replace; the last non-empty package-level line wins.
    TestResult.summary_line replace; the last ``===``/``---`` line wins.
    TestResult.output      append; unbounded, windowing is a display concern.
    *_order lists          append-only, first-seen order, never repeated.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .events import Status


@dataclass
class Counts:
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    running: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.skipped + self.running

    @property
    def finished(self) -> int:
        return self.passed + self.failed + self.skipped

    def record(self, status: Status) -> None:
        """Move one entry from ``running`` into the bucket for ``status``."""
        self.running -= 1
        if status == Status.PASSED:
            self.passed += 1
        elif status == Status.FAILED:
            self.failed += 1
        elif status == Status.SKIPPED:
            self.skipped += 1


@dataclass
class TestResult:
    __test__ = False

    package: str
    name: str
    status: Status = Status.RUNNING
    start_time: float = 0.0
    wall_start_time: float = 0.0
    elapsed: float = 0.0
    output: list[str] = field(default_factory=list)
    summary_line: str = ""

    @property
    def key(self) -> str:
        return f"{self.package}/{self.name}"

    @property
    def running(self) -> bool:
        return self.status == Status.RUNNING


@dataclass
class PackageResult:
    name: str
    status: Status = Status.RUNNING
    start_time: float = 0.0
    wall_start_time: float = 0.0
    elapsed: float = 0.0
    counts: Counts = field(default_factory=Counts)
    output: str = ""
    test_order: list[str] = field(default_factory=list)

    @property
    def running(self) -> bool:
        return self.status == Status.RUNNING


@dataclass
class Run:
    id: int
    packages: dict[str, PackageResult] = field(default_factory=dict)
    package_order: list[str] = field(default_factory=list)
    test_results: dict[str, TestResult] = field(default_factory=dict)
    counts: Counts = field(default_factory=Counts)
    running_pkgs: int = 0
    non_test_output: list[str] = field(default_factory=list)
    start_time: float = 0.0
    wall_start_time: float = 0.0
    end_time: float | None = None
    status: Status = Status.RUNNING

    @property
    def finished(self) -> bool:
        return self.end_time is not None

    @property
    def duration(self) -> float:
        if self.end_time is None:
            return 0.0
        return max(0.0, self.end_time - self.start_time)

    def iter_packages(self) -> list[PackageResult]:
        return [self.packages[name] for name in self.package_order]

    def iter_tests(self, package: PackageResult) -> list[TestResult]:
        return [self.test_results[f"{package.name}/{name}"] for name in package.test_order]


@dataclass
class State:
    runs: list[Run] = field(default_factory=list)
    current_run: Run | None = None

    @property
    def latest_run(self) -> Run | None:
        if not self.runs:
            return None
        return self.runs[-1]
