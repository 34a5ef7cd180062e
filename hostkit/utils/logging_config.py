"""
Logging configuration for hostkit.

This module sets up structured logging with structlog. It covers developer
diagnostics only; operator-facing messages go through LogSink.
"""

import logging
from typing import Any, Dict

import structlog
from structlog.stdlib import LoggerFactory

from hostkit.core.config import Config

REDACTED = "***"
SENSITIVE_KEYS = frozenset({"secret", "password", "db_password"})


def redact_secrets(_logger: Any, _method: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask credential fields before they reach a renderer."""
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS and event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(level: str = None) -> None:
    """
    Configure structured logging for the library.

    Records are rendered as JSON and handed to the stdlib ``hostkit`` logger,
    so the host application decides where they end up.

    Args:
        level: Level name for the ``hostkit`` logger. Defaults to Config.LOG_LEVEL.
    """
    level_name = (level or Config.LOG_LEVEL).upper()
    logging.getLogger("hostkit").setLevel(getattr(logging, level_name, logging.INFO))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            redact_secrets,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name, normally the calling module's ``__name__``.
    """
    return structlog.get_logger(name)


configure_logging()
