"""
Structured Logging Configuration

structlog setup for the client. Every event carries the emitting module
under ``logger``; per-fetch context (query generation, term) travels
through contextvars so relay-level events can be tied back to the query
that started them.
"""

import logging
import sys
from typing import Any, ContextManager, Optional

import structlog
from structlog.types import Processor

from ..config import get_settings

# Context keys the client binds; kept first in rendered output.
CONTEXT_KEYS = ("generation", "term", "post_id")


def _order_context(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Move bound context keys right after the event name."""
    event = event_dict.pop("event", None)
    ordered = {"event": event} if event is not None else {}
    for key in CONTEXT_KEYS:
        if key in event_dict:
            ordered[key] = event_dict.pop(key)
    ordered.update(event_dict)
    return ordered


def setup_logging(log_level: Optional[str] = None):
    """
    Configure structured logging.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR).
            Defaults to ``settings.log_level``, else DEBUG in debug mode.
    """
    settings = get_settings()

    if log_level is None:
        log_level = settings.log_level or ("DEBUG" if settings.debug else "INFO")
    level = getattr(logging, log_level.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _order_context,
    ]

    if settings.environment == "development":
        processors.append(structlog.dev.ConsoleRenderer(colors=True, sort_keys=False))
    else:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "reelfeed") -> structlog.BoundLogger:
    """Module logger; ``name`` is bound as the ``logger`` key."""
    return structlog.get_logger().bind(logger=name)


def log_context(**values: Any) -> ContextManager[None]:
    """
    Bind context for every event logged inside the block.

    asyncio tasks copy contextvars when created, so values bound inside a
    fetch task stay with that task.
    """
    return structlog.contextvars.bound_contextvars(**values)
