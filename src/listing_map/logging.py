"""Structured logging setup for the map controller.

Each fetch task runs inside :func:`fetch_context`, so every line logged while
it is in flight (client, store, marker reconciliation) carries ``fetch=N``.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO

import structlog
from structlog.contextvars import bound_contextvars


def configure_logging(
    *,
    json_output: bool = False,
    level: int | str = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog once for the host application.

    Args:
        json_output: Emit one JSON object per event instead of the console
            renderer.
        level: Minimum level, as a number or a name such as ``"debug"``.
        stream: Where log lines go. Defaults to stderr.
    """
    if isinstance(level, str):
        level = logging.getLevelNamesMapping()[level.upper()]

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream is None))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger whose events carry the module name as ``logger``."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(logger=name)
    return logger


@contextmanager
def fetch_context(fetch: int) -> Iterator[None]:
    """Tag log lines with the fetch number; tasks created inside inherit it."""
    with bound_contextvars(fetch=fetch):
        yield
