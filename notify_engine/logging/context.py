"""Scoped logging context for notification sends.

Fields pushed here (notification_id, recipient_id, event_type, ...) are
merged into every log record emitted inside the scope by the
ContextualFilter. Context lives in a ContextVar, so concurrent sends running
as separate asyncio tasks never see each other's fields.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

_log_context: ContextVar[Dict[str, Any]] = ContextVar("notify_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the fields active in the current context."""
    return _log_context.get().copy()


def push_log_context(**fields: Any) -> Token:
    """Merge fields into the current logging context.

    Args:
        **fields: Key-value pairs to add; None values are skipped

    Returns:
        Token for pop_log_context()
    """
    merged = {**_log_context.get()}
    merged.update({key: value for key, value in fields.items() if value is not None})
    return _log_context.set(merged)


def pop_log_context(token: Token) -> None:
    """Restore the context captured by push_log_context()."""
    _log_context.reset(token)


def clear_log_context() -> None:
    """Drop every field from the current context (used by tests)."""
    _log_context.set({})


class log_context:
    """Context manager that scopes logging fields to a block.

    Example:
        >>> with log_context(notification_id="notif-1", recipient_id="r-1"):
        ...     logger.info("Delivering")  # record carries both fields
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
            self.token = None
        return False
