"""Structured logging setup with structlog.

Two output modes:
- "json": JSON lines, one event per line
- "console": colored human-readable output

Each price stream can be tagged with a stream_id (usually the instrument
symbol). The tag lives in structlog's contextvars, so it follows the
current thread or task and is merged into every event logged inside
stream_context().
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

STREAM_ID_KEY = "stream_id"


def get_stream_id() -> str:
    """Stream ID bound in the current context, or "" if none."""
    return str(structlog.contextvars.get_contextvars().get(STREAM_ID_KEY, ""))


@contextmanager
def stream_context(stream_id: str) -> Iterator[None]:
    """Tag every event logged inside the block with stream_id."""
    if not stream_id:
        yield
        return
    with structlog.contextvars.bound_contextvars(**{STREAM_ID_KEY: stream_id}):
        yield


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(level: str = "INFO", log_format: str = "json") -> None:
    """Configure structlog on top of stdlib logging, writing to stderr.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: "json" or "console".
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a named structlog logger."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
