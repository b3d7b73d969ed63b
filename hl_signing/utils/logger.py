"""
Structured logging configuration using structlog.

Signing code logs action types, nonces and addresses, never key material.
As a second line of defence every event passes through a redaction
processor that masks values stored under secret-looking keys.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

from hl_signing.utils.config import get_settings

REDACTED = "***"

# Event keys whose values are masked before rendering
SECRET_KEYS = frozenset({"private_key", "secret", "secret_key", "key", "wallet", "mnemonic"})


def redact_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor replacing secret values with ``***``."""
    for key in event_dict:
        if key.lower() in SECRET_KEYS:
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    include_timestamps: bool = True,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: If True, output JSON formatted logs. If False, use
                    console-friendly colored output.
        include_timestamps: Whether to include timestamps in log entries.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamps:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_output:
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_from_settings() -> None:
    """Apply ``APP_LOG_LEVEL`` / ``APP_LOG_JSON`` from the loaded settings."""
    app = get_settings().app
    configure_logging(level=app.log_level, json_output=app.log_json)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Signed action", action_type="order", nonce=1700000000000)
    """
    return structlog.get_logger(name)


# Pre-configure with sensible defaults for import convenience
configure_logging(level="INFO", json_output=False)
