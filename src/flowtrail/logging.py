"""Structured logging for Flowtrail.

This module provides structured logging using structlog, enabling:
- JSON-formatted logs for production (machine-readable)
- Pretty console logs for development (human-readable)
- Automatic context binding (flow_id, step_id)
- Integration with standard library logging

Library modules log through ``logging.getLogger(__name__)``; applications
(and the ``flowtrail`` CLI) call ``configure_logging`` once at startup.

Usage:
    from flowtrail.logging import configure_logging, get_logger

    configure_logging(json_format=True)  # For production

    logger = get_logger("my.module")
    logger.info("snapshot_recorded", flow_id="flow-123", step_id=4)

Context binding:
    logger = instance_logger("flow-123")
    logger.info("recording")  # flow_id automatically included
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

_configured = False


def configure_logging(
    json_format: bool = False,
    level: int = logging.INFO,
    logger_factory: Any = None,
) -> None:
    """Configure structured logging for Flowtrail.

    Call this once at application startup before any logging occurs.

    Args:
        json_format: If True, output JSON logs (for production).
                    If False, output pretty console logs (for development).
        level: Minimum log level (default: INFO)
        logger_factory: Custom logger factory (for testing)
    """
    global _configured

    # Configure stdlib logging so module loggers share the stream and level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("flowtrail").setLevel(level)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=False,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=logger_factory or structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str) -> Any:
    """Get a structured logger for the given name.

    Args:
        name: Logger name (typically __name__ or module path)

    Returns:
        A bound logger that supports structured logging.
    """
    if not _configured:
        configure_logging()
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables that will be included in all subsequent logs.

    Args:
        **kwargs: Context key-value pairs to bind
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


def unbind_context(*keys: str) -> None:
    """Remove specific context variables.

    Args:
        *keys: Context keys to remove
    """
    structlog.contextvars.unbind_contextvars(*keys)


def instance_logger(flow_id: str) -> Any:
    """Get a logger pre-bound with flow instance context.

    Args:
        flow_id: The flow instance ID

    Returns:
        Logger with flow_id bound
    """
    return get_logger("flowtrail.instance").bind(flow_id=flow_id)
