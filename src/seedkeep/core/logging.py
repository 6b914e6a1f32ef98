"""Structured logging with correlation IDs.

structlog renders JSON in production and coloured key-value lines during
development. HTTP middleware binds a correlation ID per request; the row
editor and importer bind the acting user and record so every line of one
save or import can be followed together.
"""

import logging
import sys
import uuid
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from seedkeep.core.config import get_settings

# Third-party loggers that follow the application's level
_LIBRARY_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")

# Chatty at INFO; only raised to the application's level when SQL echo is on
_QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite")


def add_correlation_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add a correlation ID when none is bound.

    Requests get theirs from middleware; CLI commands get a fresh one per line.
    """
    if "correlation_id" not in event_dict:
        event_dict["correlation_id"] = f"cid_{uuid.uuid4().hex[:12]}"
    return event_dict


def add_logger_name(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["logger"] = logger.name if hasattr(logger, "name") else "seedkeep"
    return event_dict


def rename_message_field(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename 'event' to 'message' so log shippers pick up the text."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        # structlog.stdlib.add_logger_name doesn't work with PrintLogger
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_correlation_id,
        rename_message_field,
    ]


def _renderers(console: bool) -> list[Processor]:
    if console:
        return [
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


def configure_logging(settings: Any | None = None) -> None:
    """Configure structlog and the standard library loggers.

    Args:
        settings: Optional settings instance. If not provided, will load from environment.
    """
    if settings is None:
        settings = get_settings()

    level = getattr(logging, settings.log_level)
    console = settings.is_development or settings.log_format == "console"

    structlog.configure(
        processors=_shared_processors() + _renderers(console),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        # Console mode re-resolves stdout so test runners can capture it
        cache_logger_on_first_use=not console,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )
    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(level if settings.db_echo else max(level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Optional logger name. If not provided, uses 'seedkeep'.
    """
    return structlog.get_logger(name or "seedkeep")


class LoggingContext:
    """Context manager binding key-value pairs to every log line inside it.

    Example:
        with LoggingContext(actor="staff@example.org", record_id="abc"):
            logger.info("Saving row")  # Will include actor and record_id
    """

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs
        self.bound = False

    def __enter__(self) -> "LoggingContext":
        structlog.contextvars.bind_contextvars(**self.context)
        self.bound = True
        return self

    def __exit__(self, *args: Any) -> None:
        if self.bound:
            structlog.contextvars.unbind_contextvars(*self.context.keys())
            self.bound = False


def bind_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_context() -> None:
    """Drop every bound context variable; called when a request ends."""
    structlog.contextvars.clear_contextvars()
