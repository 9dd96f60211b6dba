"""
Pathwatch Structured Logging Module.

Provides consistent, structured logging throughout the library.
Requires Python 3.11+.
"""

import logging
import sys
from functools import lru_cache
from pathlib import Path
from typing import Any, TextIO

import structlog
from structlog.types import Processor

from utils.config import get_settings


def _add_app_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add application context to all log entries."""
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["version"] = settings.app_version
    event_dict["environment"] = settings.environment
    return event_dict


@lru_cache(maxsize=None)
def _open_log_stream(file_path: Path) -> TextIO:
    """Open ``file_path`` for appending, once per process."""
    file_path.parent.mkdir(parents=True, exist_ok=True)
    return file_path.open("a", encoding="utf-8")


def _logger_factory() -> Any:
    """Write to the configured log file, or stdout when none is set."""
    settings = get_settings()
    if settings.logging.file_path is None:
        return structlog.PrintLoggerFactory()

    return structlog.WriteLoggerFactory(
        file=_open_log_stream(settings.logging.file_path.resolve())
    )


def configure_logging() -> None:
    """
    Configure structured logging for the library.

    Call this once at application startup. Library code never calls it on
    import; unconfigured structlog falls back to its development defaults.
    """
    settings = get_settings()
    level = getattr(logging, settings.logging.level.upper())

    # Common processors for all output formats
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_app_context,
    ]

    if settings.logging.format == "json":
        # JSON format for production
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # Console format for development
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=_logger_factory(),
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging for third-party packages
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    # Suppress noisy loggers
    logging.getLogger("watchdog").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


# Pre-configured logger for quick imports
logger = get_logger("pathwatch")


class LoggerMixin:
    """
    Mixin class to add logging capability to any class.

    Usage:
        class MyClass(LoggerMixin):
            def my_method(self):
                self.log.info("doing something", key="value")
    """

    @property
    def log(self) -> structlog.stdlib.BoundLogger:
        """Get logger bound to this class name."""
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger
