"""Exceptions for notification record handling."""


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class DuplicateNotificationError(NotificationError):
    """Raised when a record with an existing id is appended to history."""

    pass


class NotificationNotFoundError(NotificationError):
    """Raised when a status change targets an unknown notification id."""

    pass


class InvalidStatusTransition(NotificationError):
    """Raised when a status change would move a record backwards.

    Allowed changes are ``pending -> sent``, ``pending -> failed`` and
    ``sent -> delivered``.
    """

    def __init__(self, notification_id: str, current: str, requested: str):
        self.notification_id = notification_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Notification {notification_id} cannot move from '{current}' to '{requested}'"
        )
