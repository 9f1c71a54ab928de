"""Stateful reducer from runner events to the run/package/test model.

The input carries no run framing. Run boundaries are inferred:

- a run starts on any event while no run is current;
- a run finishes naturally when its running-package count drops to zero
  after a package reports its own pass/fail/skip;
- ``finish()`` closes a run that is still open when the stream ends or the
  user interrupts, forcing its running packages to ``interrupted``.

The collector does no locking and no I/O. One caller owns it.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from gopulse.logging import get_logger

from .bus import Notification, NotificationBus, NotificationType
from .events import BUILD_ACTIONS, TERMINAL_ACTIONS, Action, Status, TestEvent
from .model import PackageResult, Run, State, TestResult

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = get_logger(__name__)

SUMMARY_PREFIXES = ("===", "---")


class Collector:
    def __init__(
        self,
        *,
        replay: bool = False,
        replay_rate: float = 1.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._state = State()
        self._bus = NotificationBus()
        self._clock = clock
        self._replay = replay
        self._replay_rate = replay_rate
        self._last_event_time = 0.0

    def set_replay(self, replay: bool, rate: float) -> None:
        self._replay = replay
        self._replay_rate = rate

    @property
    def state(self) -> State:
        return self._state

    @property
    def current_run(self) -> Run | None:
        return self._state.current_run

    def get_run(self, run_id: int) -> Run | None:
        if run_id < 1 or run_id > len(self._state.runs):
            return None
        return self._state.runs[run_id - 1]

    def subscribe(self, callback: Callable[[Notification], None]) -> None:
        self._bus.subscribe(callback)

    def push_all(self, events: Iterable[TestEvent]) -> None:
        for event in events:
            self.push(event)

    def push(self, event: TestEvent) -> None:
        self._last_event_time = event.time

        run = self._state.current_run
        if run is None:
            run = self._start_run(event.time)

        if not event.package:
            if event.action in BUILD_ACTIONS and event.output:
                line = event.output.rstrip("\n")
                run.non_test_output.append(line)
                self._notify(NotificationType.NON_TEST_OUTPUT, run, output=line)
            return

        package = run.packages.get(event.package)
        if package is None:
            package = PackageResult(
                name=event.package,
                start_time=event.time,
                wall_start_time=self._clock(),
            )
            run.packages[event.package] = package
            run.package_order.append(event.package)
            run.running_pkgs += 1

        if event.test:
            self._push_test_event(run, package, event)
        else:
            self._push_package_event(run, package, event)

    def finish(self) -> None:
        """Close the current run, interrupting packages that never reported."""
        run = self._state.current_run
        if run is None:
            return

        run.end_time = self._end_time(run)
        simulated = self._simulated_duration(run)

        interrupted = 0
        for package in run.iter_packages():
            if package.status != Status.RUNNING:
                continue
            package.status = Status.INTERRUPTED
            if simulated is not None:
                offset = package.start_time - run.start_time
                package.elapsed = max(0.0, simulated - offset)
            else:
                package.elapsed = run.end_time - package.start_time
            run.running_pkgs -= 1
            interrupted += 1
            self._notify(NotificationType.PACKAGE_UPDATED, run, package=package.name)

        run.status = Status.INTERRUPTED if interrupted else _settled_status(run)
        self._state.current_run = None
        logger.info(
            "run_finished",
            run_id=run.id,
            status=run.status.value,
            interrupted_packages=interrupted,
        )
        self._notify(NotificationType.RUN_FINISHED, run)

    def _start_run(self, start_time: float) -> Run:
        run = Run(
            id=len(self._state.runs) + 1,
            start_time=start_time,
            wall_start_time=self._clock(),
        )
        self._state.runs.append(run)
        self._state.current_run = run
        logger.debug("run_started", run_id=run.id)
        self._notify(NotificationType.RUN_STARTED, run)
        return run

    def _push_package_event(self, run: Run, package: PackageResult, event: TestEvent) -> None:
        if event.action == Action.OUTPUT:
            line = event.output.rstrip("\n")
            if line:
                package.output = line
                self._notify(NotificationType.PACKAGE_UPDATED, run, package=package.name)

        elif event.action in TERMINAL_ACTIONS:
            if package.status != Status.RUNNING:
                logger.debug(
                    "duplicate_package_terminal",
                    run_id=run.id,
                    package=package.name,
                    action=event.action,
                )
                return
            package.status = Status.from_action(event.action)
            package.elapsed = event.elapsed
            run.running_pkgs -= 1
            self._notify(NotificationType.PACKAGE_UPDATED, run, package=package.name)
            self._check_run_finished(run)

    def _push_test_event(self, run: Run, package: PackageResult, event: TestEvent) -> None:
        key = event.key
        test = run.test_results.get(key)
        if test is None:
            test = TestResult(
                package=event.package,
                name=event.test,
                start_time=event.time,
                wall_start_time=self._clock(),
            )
            run.test_results[key] = test
            package.test_order.append(event.test)
            package.counts.running += 1
            run.counts.running += 1

        action = event.action
        if action in (Action.RUN, Action.RESUME, Action.CONT):
            if not test.status.is_terminal:
                test.status = Status.RUNNING
                self._notify_test(run, test)

        elif action == Action.PAUSE:
            if not test.status.is_terminal:
                test.status = Status.PAUSED
                self._notify_test(run, test)

        elif action == Action.OUTPUT:
            line = event.output.rstrip("\n")
            if not line:
                return
            if line.startswith(SUMMARY_PREFIXES):
                test.summary_line = line
            else:
                test.output.append(line)
                self._notify(
                    NotificationType.TEST_OUTPUT,
                    run,
                    package=package.name,
                    test=test.name,
                    output=line,
                )
            self._notify_test(run, test)

        elif action in TERMINAL_ACTIONS:
            if test.status.is_terminal:
                return
            test.status = Status.from_action(action)
            test.elapsed = event.elapsed
            package.counts.record(test.status)
            run.counts.record(test.status)
            self._notify_test(run, test)
            self._notify(NotificationType.PACKAGE_UPDATED, run, package=package.name)

    def _check_run_finished(self, run: Run) -> None:
        if run.running_pkgs != 0:
            return
        run.end_time = self._end_time(run)
        run.status = _settled_status(run)
        self._state.current_run = None
        logger.debug("run_finished", run_id=run.id, status=run.status.value)
        self._notify(NotificationType.RUN_FINISHED, run)

    def _simulated_duration(self, run: Run) -> float | None:
        """Wall time since the run began, rescaled to event time. None outside replay."""
        if not self._replay or self._replay_rate <= 0:
            return None
        return (self._clock() - run.wall_start_time) / self._replay_rate

    def _end_time(self, run: Run) -> float:
        if not self._replay:
            return self._clock()
        simulated = self._simulated_duration(run)
        if simulated is None:
            return self._last_event_time
        return run.start_time + simulated

    def _notify(
        self,
        type_: NotificationType,
        run: Run,
        *,
        package: str = "",
        test: str = "",
        output: str = "",
    ) -> None:
        if not self._bus.has_subscribers:
            return
        self._bus.emit(
            Notification(type=type_, run_id=run.id, package=package, test=test, output=output)
        )

    def _notify_test(self, run: Run, test: TestResult) -> None:
        self._notify(NotificationType.TEST_UPDATED, run, package=test.package, test=test.name)


def _settled_status(run: Run) -> Status:
    if not run.packages:
        return Status.UNKNOWN
    if run.counts.failed > 0:
        return Status.FAILED
    if any(package.status == Status.FAILED for package in run.packages.values()):
        return Status.FAILED
    return Status.PASSED
