"""Transport exceptions.

Adapters raise these internally; BlockingTransport converts them into a
failed TransportResult so they never reach the notification service.
"""


class TransportError(Exception):
    """Base exception for delivery failures."""

    pass


class TransportConfigurationError(TransportError):
    """Raised when a transport is constructed with unusable settings."""

    pass


class SMTPDeliveryError(TransportError):
    """Raised when the SMTP server rejects or cannot accept a message."""

    pass


class HTTPDeliveryError(TransportError):
    """Raised when the HTTP provider rejects a message or is unreachable."""

    def __init__(self, message: str, status_code: int = None):
        self.status_code = status_code
        super().__init__(message)
