"""Domain models and errors shared by all notification engine components."""

from .exceptions import (
    DuplicateNotificationError,
    InvalidStatusTransition,
    NotificationError,
    NotificationNotFoundError,
)
from .models import (
    EVENT_TOGGLE_KEYS,
    INERT_TOGGLE_KEYS,
    STATUS_TRANSITIONS,
    TRACKED_EVENT_TYPES,
    EventType,
    Frequency,
    Notification,
    NotificationStats,
    NotificationStatus,
    Preference,
    Priority,
    QuietHours,
    SendResult,
    Template,
)

__all__ = [
    # Models
    "EventType",
    "Priority",
    "NotificationStatus",
    "Frequency",
    "Template",
    "QuietHours",
    "Preference",
    "Notification",
    "SendResult",
    "NotificationStats",
    # Constants
    "EVENT_TOGGLE_KEYS",
    "INERT_TOGGLE_KEYS",
    "STATUS_TRANSITIONS",
    "TRACKED_EVENT_TYPES",
    # Exceptions
    "NotificationError",
    "DuplicateNotificationError",
    "NotificationNotFoundError",
    "InvalidStatusTransition",
]
