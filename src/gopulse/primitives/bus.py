from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field
from ulid import ULID

from gopulse.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger(__name__)


class NotificationType(StrEnum):
    RUN_STARTED = "run_started"
    RUN_FINISHED = "run_finished"
    PACKAGE_UPDATED = "package_updated"
    TEST_UPDATED = "test_updated"
    TEST_OUTPUT = "test_output"
    NON_TEST_OUTPUT = "non_test_output"


class Notification(BaseModel):
    """A change the collector made to its state."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(ULID()))
    type: NotificationType
    run_id: int
    package: str = ""
    test: str = ""
    output: str = ""


class NotificationBus:
    def __init__(self) -> None:
        self._subscribers: list[Callable[[Notification], None]] = []

    def subscribe(self, callback: Callable[[Notification], None]) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[Notification], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    @property
    def has_subscribers(self) -> bool:
        return bool(self._subscribers)

    def emit(self, notification: Notification) -> None:
        for callback in list(self._subscribers):
            try:
                callback(notification)
            except Exception:  # noqa: BLE001
                logger.exception(
                    "subscriber_failed",
                    notification=notification.type.value,
                    run_id=notification.run_id,
                )
