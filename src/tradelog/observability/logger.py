"""Structured logging with sync_id support.

Uses structlog for structured logging with JSON or console output.
Every log entry carries the sync_id of the reconciliation pass that
produced it (empty outside a pass), so one pass can be followed across
the reconciler, the sheets client and the service.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any

import structlog

# Context var for sync_id propagation
_sync_id: ContextVar[str] = ContextVar("sync_id", default="")


def get_sync_id() -> str:
    """Get current sync ID from context (empty outside a pass)."""
    return _sync_id.get()


def set_sync_id(sync_id: str) -> None:
    """Set sync ID in context."""
    _sync_id.set(sync_id)


def new_sync_id() -> str:
    """Generate and set a new sync ID."""
    sid = uuid.uuid4().hex[:12]
    _sync_id.set(sid)
    return sid


def _add_sync_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor: add sync_id to entries logged inside a pass."""
    sid = get_sync_id()
    if sid:
        event_dict["sync_id"] = sid
    return event_dict


def setup_logging(
    level: str = "INFO",
    format: str = "console",
) -> None:
    """Configure structured logging for the application.

    Stdlib loggers (``logging.getLogger(__name__)``) are routed through
    the same structlog processor chain, so module code does not need to
    import structlog.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format: "json" for machine output, "console" for humans.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _add_sync_id,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: Any
    if format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[structlog.stdlib.ExtraAdder(), *shared],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level)
