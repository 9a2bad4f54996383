"""Context management for structured logging.

Provides automatic context injection into log records using contextvars,
so a WebSocket handler can bind ``connection_id`` once, and ``sender`` for
each relayed event, and every record logged while handling that connection
carries them, including records emitted by the chat routers.

Each asyncio task gets its own copy of the context, so concurrent
connections never see each other's fields.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any

# Each async task gets its own copy automatically
_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Set logging context for the current async task/thread.

    Args:
        **kwargs: Key-value pairs to add to logging context.
            Common examples: connection_id, sender

    Example:
        ```python
        set_log_context(connection_id="3f2a...")
        logger.info("Frame received")  # Includes connection_id
        ```
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Clear all logging context for the current async task/thread."""
    _log_context.set({})


def remove_from_log_context(*keys: str) -> None:
    """Remove specific keys from logging context.

    Args:
        *keys: Keys to remove from context.
    """
    current = _log_context.get().copy()
    for key in keys:
        current.pop(key, None)
    _log_context.set(current)


class ContextInjectingFilter(logging.Filter):
    """Logging filter that injects the contextvars log context into each record.

    Attached to the root QueueHandler by configure_logging(), so it sees
    records from every logger that propagates to root.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject context into log record.

        Args:
            record: The log record to enhance with context.

        Returns:
            True (always allow the record to be logged).
        """
        context = _log_context.get()

        for key, value in context.items():
            # Don't overwrite existing attributes
            if not hasattr(record, key):
                setattr(record, key, value)

        return True
