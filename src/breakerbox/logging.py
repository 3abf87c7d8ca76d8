"""Structured log calls for breaker events.

Breakers accept any logger with structlog-style keyword methods. A stdlib
``logging.Logger`` also works; fields then travel in ``extra``. Applications
configure structlog (renderers, levels) themselves.
"""

from __future__ import annotations

import logging
from typing import Protocol

import structlog

_StdlibLogger = logging.Logger | logging.LoggerAdapter[logging.Logger]


class StructuredLogger(Protocol):
    """Logger accepting an event name plus keyword fields."""

    def info(self, event: str, **kwargs: object) -> None: ...

    def warning(self, event: str, **kwargs: object) -> None: ...

    def error(self, event: str, **kwargs: object) -> None: ...

    def exception(self, event: str, **kwargs: object) -> None: ...


BreakerLogger = StructuredLogger | _StdlibLogger


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return the structlog logger breakers use when none is injected."""
    return structlog.stdlib.get_logger(name)


def _emit(
    method_name: str,
    logger: BreakerLogger,
    event: str,
    fields: dict[str, object],
) -> None:
    method = getattr(logger, method_name)
    if isinstance(logger, (logging.Logger, logging.LoggerAdapter)):
        method(event, extra=fields)
    else:
        method(event, **fields)


def log_info(logger: BreakerLogger, event: str, **fields: object) -> None:
    _emit("info", logger, event, fields)


def log_warning(logger: BreakerLogger, event: str, **fields: object) -> None:
    _emit("warning", logger, event, fields)


def log_error(logger: BreakerLogger, event: str, **fields: object) -> None:
    _emit("error", logger, event, fields)


def log_exception(logger: BreakerLogger, event: str, **fields: object) -> None:
    """Log ``event`` with the active exception's traceback attached."""
    _emit("exception", logger, event, fields)
