"""Structured logging configuration using structlog.

Every event carries the service name, environment and the request ID bound
by the request middleware. Users' contact data (email addresses and phone
numbers) never reaches the log output: it is masked by ``redact_contact_data``,
including inside database error messages, which echo statement parameters.
"""
import logging
import os
import re
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from sportnest.core.config import settings

REDACTED = "***"

# Event keys whose values are contact data
CONTACT_KEYS = frozenset({"email", "phone_number"})

EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")

# Chatty third-party loggers and the level they are held at unless SQL logging is on
QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "asyncio": logging.WARNING,
}


def add_app_context(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add application context to log entries."""
    event_dict["service"] = settings.otel_service_name
    event_dict["environment"] = settings.environment
    return event_dict


def _mask(value: Any) -> Any:
    if isinstance(value, str):
        return EMAIL_PATTERN.sub(REDACTED, value)
    return value


def redact_contact_data(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask contact fields and email addresses embedded in any string value."""
    for key, value in event_dict.items():
        if key in CONTACT_KEYS and value is not None:
            event_dict[key] = REDACTED
        else:
            event_dict[key] = _mask(value)
    return event_dict


def _is_testing() -> bool:
    return bool(
        "pytest" in os.environ.get("_", "")
        or os.environ.get("PYTEST_CURRENT_TEST")
        or "pytest" in sys.modules
    )


def _configure_stdlib_loggers(log_level: int) -> None:
    # Route stdlib loggers (uvicorn, sqlalchemy) through the same stream
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )
    for name, quiet_level in QUIET_LOGGERS.items():
        if settings.log_sql and name == "sqlalchemy.engine":
            logging.getLogger(name).setLevel(logging.INFO)
        else:
            logging.getLogger(name).setLevel(max(quiet_level, log_level))


def build_processors(json_output: bool) -> list[Processor]:
    """Processor chain shared by every logger, ending in the renderer."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        structlog.processors.StackInfoRenderer(),
        redact_contact_data,
    ]

    if json_output:
        # JSONRenderer formats exceptions itself; format_exc_info would warn under pytest
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def configure_logging() -> None:
    """Configure structlog for structured JSON logging."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    _configure_stdlib_loggers(log_level)

    json_output = settings.log_format == "json" or settings.is_production or _is_testing()

    structlog.configure(
        processors=build_processors(json_output),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None, **initial_values: Any) -> structlog.BoundLogger:
    """Get a configured logger, optionally bound to context shared by all its events.

    Example:
        logger = get_logger(__name__, model="User")
        logger.info("Entities removed in bulk", affected=3)
    """
    logger: structlog.BoundLogger = structlog.get_logger(name, **initial_values)
    return logger
