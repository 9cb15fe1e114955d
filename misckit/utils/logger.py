"""
Logging configuration and utilities.

This module provides structured logging for the package, with a console
renderer for development and JSON output for log aggregation.

Package loggers are wrapped individually with ``structlog.wrap_logger`` so
that importing the package never touches an application's global structlog
configuration.
"""

import sys
import logging
from typing import Any, List
from pathlib import Path
import structlog

from misckit.config.settings import settings


def _processors() -> List[Any]:
    """Processor chain applied to every package logger."""
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        # JSON for production, console for development
        structlog.processors.JSONRenderer() if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    ]


def setup_logging() -> None:
    """
    Configure the ``misckit`` stdlib logger.

    Sets level and handlers from the package settings (log level and optional
    log file). Records do not propagate to the root logger, so an
    application's own handlers never print package events twice.
    """
    package_logger = logging.getLogger("misckit")
    package_logger.setLevel(getattr(logging, settings.log_level))
    package_logger.propagate = False

    # Remove handlers left over from a previous setup
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    # structlog has already rendered the event
    formatter = logging.Formatter(fmt="%(message)s")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(getattr(logging, settings.log_level))
    package_logger.addHandler(console_handler)

    if settings.log_file:
        log_file_path = Path(settings.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file_path)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(getattr(logging, settings.log_level))
        package_logger.addHandler(file_handler)


def get_logger(name: str, **context: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance with optional context.

    Args:
        name: Logger name (typically __name__)
        **context: Additional context to include in all log messages

    Returns:
        Configured logger instance

    Examples:
        >>> logger = get_logger(__name__, component="channel")
        >>> logger.info("Channel created", events=0)
    """
    logger = structlog.wrap_logger(
        logging.getLogger(name),
        processors=_processors(),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
    )
    if context:
        logger = logger.bind(**context)
    return logger


# Initialize logging on module import
setup_logging()
