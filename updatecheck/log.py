"""Logging setup for hosts embedding the update checker."""

from __future__ import annotations

import logging

import structlog

from .models import LogLevel

LEVEL_MAP = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


def configure_logging(log_level: LogLevel | str = LogLevel.INFO) -> None:
    """Configure structlog and standard logging with the specified level.

    Args:
        log_level: Log level (debug, info, warning, error).
    """
    if not isinstance(log_level, LogLevel):
        try:
            log_level = LogLevel(log_level.lower())
        except ValueError:
            log_level = LogLevel.INFO
    level = LEVEL_MAP[log_level]

    logging.basicConfig(
        format="%(message)s",
        level=level,
        force=True,
    )

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
