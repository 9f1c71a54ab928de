"""Structured logging for gopulse diagnostics.

Only the ``gopulse`` logger hierarchy is configured; the host's root logger
is left alone. stdout belongs to the live view and the summary, so records
go to stderr unless another stream is given.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.stdlib import ProcessorFormatter

ROOT_LOGGER = "gopulse"


def _add_component(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Tag each record with its gopulse module, e.g. ``primitives.collector``."""
    record = event_dict.get("_record")
    if record is not None:
        name = record.name
        if name.startswith(ROOT_LOGGER + "."):
            name = name[len(ROOT_LOGGER) + 1 :]
        event_dict["component"] = name
    return event_dict


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "WARNING",
    stream: TextIO | None = None,
) -> logging.Logger:
    """Route gopulse records through structlog's ProcessorFormatter.

    Args:
        json_output: Render one JSON object per line instead of console text.
        level: Threshold for the ``gopulse`` logger.
        stream: Destination (default: stderr).

    Returns:
        The configured ``gopulse`` logger.
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
    ]

    final_processors: list[Any] = [_add_component, ProcessorFormatter.remove_processors_meta]
    if json_output:
        final_processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        final_processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # module loggers are created at import, before the CLI configures
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            processors=final_processors,
            foreign_pre_chain=shared_processors,
        )
    )

    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers = [handler]
    logger.setLevel(level.upper())
    logger.propagate = False
    return logger


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
