from __future__ import annotations

import json
import re
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gopulse.errors import DecodeError

_FRACTION = re.compile(r"(\.\d{6})\d+")


class Action(StrEnum):
    START = "start"
    RUN = "run"
    PAUSE = "pause"
    CONT = "cont"
    RESUME = "resume"
    OUTPUT = "output"
    PASS = "pass"
    FAIL = "fail"
    SKIP = "skip"
    BUILD_OUTPUT = "build-output"
    BUILD_FAIL = "build-fail"
    BUILD_PASS = "build-pass"


BUILD_ACTIONS = frozenset({Action.BUILD_OUTPUT, Action.BUILD_FAIL, Action.BUILD_PASS})
TERMINAL_ACTIONS = frozenset({Action.PASS, Action.FAIL, Action.SKIP})


class Status(StrEnum):
    UNKNOWN = "unknown"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    INTERRUPTED = "interrupted"
    PAUSED = "paused"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES

    @classmethod
    def from_action(cls, action: str) -> Status:
        """Map a terminal action (pass/fail/skip) to its status."""
        return _ACTION_STATUS[action]


_TERMINAL_STATUSES = frozenset({Status.PASSED, Status.FAILED, Status.SKIPPED, Status.INTERRUPTED})
_ACTION_STATUS = {
    Action.PASS: Status.PASSED,
    Action.FAIL: Status.FAILED,
    Action.SKIP: Status.SKIPPED,
}


class TestEvent(BaseModel):
    """One decoded line of the runner's JSON progress stream.

    ``action`` stays a plain string: actions this version does not know
    must still decode so that the collector can ignore them.
    """

    __test__ = False

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    time: float = Field(default=0.0, alias="Time")
    action: str = Field(alias="Action")
    package: str = Field(default="", alias="Package")
    test: str = Field(default="", alias="Test")
    output: str = Field(default="", alias="Output")
    elapsed: float = Field(default=0.0, alias="Elapsed")
    import_path: str = Field(default="", alias="ImportPath")
    source: str = Field(default="", alias="Source")

    @field_validator("time", mode="before")
    @classmethod
    def _coerce_time(cls, value: Any) -> Any:
        if value is None:
            return 0.0
        if isinstance(value, datetime):
            return value.timestamp()
        if isinstance(value, str):
            # datetime.fromisoformat stops at microseconds; runners emit nanoseconds.
            text = _FRACTION.sub(r"\1", value.strip())
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            try:
                return datetime.fromisoformat(text).timestamp()
            except ValueError:
                return value
        return value

    @property
    def key(self) -> str:
        return f"{self.package}/{self.test}"


def parse_event(line: str | bytes) -> TestEvent:
    """Decode a single JSON line into a TestEvent.

    Raises:
        DecodeError: If the line is not a JSON object matching the event shape.
    """
    text = line.decode("utf-8", errors="replace") if isinstance(line, bytes) else line
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(text, "invalid json") from exc
    if not isinstance(payload, dict):
        raise DecodeError(text, "not an object")
    try:
        return TestEvent.model_validate(payload)
    except ValidationError as exc:
        raise DecodeError(text, f"{exc.error_count()} validation error(s)") from exc
