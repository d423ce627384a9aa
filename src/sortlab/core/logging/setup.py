from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import orjson
import structlog

from sortlab.core.config.settings import settings


def _json_serializer(obj: Any, default: Any) -> str:
    """
    JSON serializer for structured logs.

    orjson keeps key order stable and handles tuples of indices natively.
    """
    return orjson.dumps(obj, default=default).decode("utf-8")


def configure_logging(*, level: str | None = None) -> None:
    """
    Configure structured logging for the entire application.

    Call once at process startup, before the first sort run.
    Defaults to settings.log_level.
    """
    level = settings.log_level if level is None else level
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        # Merge context variables (run_id, algorithm, component)
        structlog.contextvars.merge_contextvars,

        # Standard metadata
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),

        # Exception handling
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.dict_tracebacks,

        # Final JSON output
        structlog.processors.JSONRenderer(serializer=_json_serializer),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )

    # Ensure stdlib logging flows through the same output
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


@contextmanager
def bound_context(**values: Any) -> Iterator[None]:
    """
    Bind contextual information to log entries for the duration of a block.

    Previously bound values are restored on exit, so a caller's own context
    survives a synchronous sort run.

    Example:
        with bound_context(run_id="20241217T101500Z_ab12cd34", component="session"):
            ...
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield
