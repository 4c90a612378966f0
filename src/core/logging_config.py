"""Structured logging configuration.

This module initializes structlog with a stable JSON event format.
Events are written to the current stderr stream. Loggers are configured
lazily on first request; the CLI may reconfigure the minimum level once
configuration has been resolved.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from core.constants import DEFAULT_LOG_LEVEL
from core.errors import RecordLoaderConfigError


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    if not structlog.is_configured():
        configure_logging(DEFAULT_LOG_LEVEL)
    return structlog.get_logger(name)


def configure_logging(level_name: str) -> None:
    """Configure structlog processors and the minimum log level.

    Args:
        level_name: Standard level name such as ``INFO`` or ``DEBUG``.

    Raises:
        RecordLoaderConfigError: If level name is unknown.
    """
    level = _parse_level(level_name)
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def _parse_level(level_name: str) -> int:
    """Map a level name onto its stdlib numeric value."""
    level = logging.getLevelName(level_name.strip().upper())
    if not isinstance(level, int):
        raise RecordLoaderConfigError(
            f"Invalid log level '{level_name}'. Use one of DEBUG, INFO, WARNING, ERROR."
        )
    return level


def _stderr_logger(*_args: Any) -> Any:
    """Create a print logger bound to the current stderr stream."""
    return structlog.PrintLogger(sys.stderr)
