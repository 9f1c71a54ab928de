from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from rich.spinner import Spinner

from gopulse.errors import ConfigError

ENV_PREFIX = "GOPULSE_"


class Settings(BaseModel):
    """Runtime options shared by the renderer, summary and driver."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    slow_threshold: float = Field(default=10.0, ge=0)
    max_output_lines: int = Field(default=6, ge=0)
    replay: bool = False
    replay_rate: float = Field(default=1.0, ge=0)
    tick_interval: float = Field(default=0.1, gt=0)
    spinner: str = "dots"
    # "heuristic": failed > nothing-finished-looks-skipped > passed.
    interrupted_icon: Literal["heuristic", "interrupted"] = "heuristic"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    json_logs: bool = False

    @field_validator("spinner")
    @classmethod
    def _known_spinner(cls, value: str) -> str:
        try:
            Spinner(value)
        except KeyError:
            msg = f"unknown spinner {value!r}"
            raise ValueError(msg) from None
        return value


def settings_from_env(environ: dict[str, str] | None = None) -> dict[str, str]:
    environ = dict(os.environ) if environ is None else environ
    values: dict[str, str] = {}
    for name in Settings.model_fields:
        key = f"{ENV_PREFIX}{name.upper()}"
        if key in environ:
            values[name] = environ[key]
    return values


def load_settings(
    *,
    env_file: str | Path | None = None,
    environ: dict[str, str] | None = None,
    **overrides: Any,
) -> Settings:
    """Build Settings from ``.env``, ``GOPULSE_*`` variables and explicit overrides.

    Overrides whose value is None are ignored so CLI options can be passed
    straight through.

    Raises:
        ConfigError: If any value fails validation.
    """
    if environ is None:
        load_dotenv(env_file)
    payload: dict[str, Any] = settings_from_env(environ)
    payload.update({key: value for key, value in overrides.items() if value is not None})
    if isinstance(payload.get("log_level"), str):
        payload["log_level"] = payload["log_level"].upper()
    try:
        return Settings.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(_format_validation_error(exc)) from exc


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "<root>"
        problems.append(f"{location}: {error['msg']}")
    return "invalid settings: " + "; ".join(problems)
