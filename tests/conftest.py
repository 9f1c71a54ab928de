"""Pytest configuration for gopulse tests."""

from __future__ import annotations

import pytest

from gopulse.primitives.events import TestEvent

pytest_plugins = ("pytest_asyncio",)

BASE_TIME = 1_700_000_000.0


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test as async")
    config.addinivalue_line("markers", "unit: unit tests (isolated component tests)")
    config.addinivalue_line("markers", "integration: integration tests (multi-component tests)")


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_event(
    action: str,
    package: str = "",
    test: str = "",
    *,
    output: str = "",
    elapsed: float = 0.0,
    at: float = 0.0,
) -> TestEvent:
    return TestEvent(
        time=BASE_TIME + at,
        action=action,
        package=package,
        test=test,
        output=output,
        elapsed=elapsed,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ev():
    return make_event
