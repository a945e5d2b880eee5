"""Logging configuration."""

import logging
import sys

import structlog
from structlog.typing import EventDict, WrappedLogger

from refpoints.settings import settings


def add_app_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag every event with the application name and environment."""
    event_dict.setdefault("app", settings.app_name)
    event_dict.setdefault("env", settings.env)
    return event_dict


def build_processors(log_format: str | None = None) -> list:
    """Processor chain for the console or JSON renderer."""
    log_format = log_format or settings.log_format

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
    ]

    if log_format == "json":
        # Shipped logs need the service tags and sortable timestamps
        processors += [
            add_app_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ]

    return processors


def configure_logging() -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=build_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # SQLAlchemy and uvicorn log through the standard library
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)
