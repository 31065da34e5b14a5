"""Structlog-based logging configuration.

Usage:
    from chestguard.structured_logging import configure_logging, get_logger

    configure_logging(level="DEBUG")
    logger = get_logger(__name__)
    logger.info("Loaded containers", count=12, backend="yaml")
"""

from __future__ import annotations

import logging
import re
from typing import Any

import structlog

REDACTED = "[REDACTED]"
_SENSITIVE_FIELD = re.compile(r"(password|secret|token)", re.IGNORECASE)


def redact_secrets(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Replace values of secret-bearing fields so they never reach a sink."""
    for field in list(event_dict):
        if field != "event" and _SENSITIVE_FIELD.search(field):
            event_dict[field] = REDACTED
    return event_dict


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Install the processor chain for all chestguard loggers.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR).
        json_output: Render JSON lines instead of console output.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    """Get a structlog logger bound to a module name.

    All chestguard modules obtain loggers through this function.
    """
    return structlog.get_logger(name)
