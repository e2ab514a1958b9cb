"""Structured logging setup for the library and the CLI.

Log lines are rendered by ``structlog`` either as JSON objects or in the
colored console format, and always go to stderr: the CLI prints results on
stdout. Every line carries the ``service`` name bound at configuration time.

Modules create their loggers at import with ``structlog.get_logger(name)``;
those loggers pick up whatever configuration is active when they first log.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory, add_logger_name

LOG_FORMATS = ("json", "console")


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    log_format: str = "json",
    colors: bool = True,
) -> None:
    """Configure structlog and the stdlib root logger.

    Parameters
    - service_name: Bound to every line as ``service``
    - log_level: Stdlib level name, case-insensitive
    - log_format: ``json`` or ``console``
    - colors: Colorize ``console`` output

    Raises ``ValueError`` for an unknown level or format.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format: {log_format}")

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    logging.getLogger().setLevel(level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_logger_name,
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=colors))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service_name)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def log_performance(operation: str, duration_ms: float, **fields: Any) -> None:
    """Log the duration of ``operation`` with extra fields such as result counts."""
    get_logger("localqa.performance").info(
        f"Operation {operation} completed",
        operation=operation,
        duration_ms=duration_ms,
        **fields
    )
