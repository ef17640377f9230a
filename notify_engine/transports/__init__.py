"""Delivery transports: the port and its SMTP, HTTP, log and simulated adapters."""

from .base import BlockingTransport, Transport, TransportResult
from .exceptions import (
    HTTPDeliveryError,
    SMTPDeliveryError,
    TransportConfigurationError,
    TransportError,
)
from .factory import build_transport
from .http import HttpTransport
from .local import SIMULATED_FAILURE, LogTransport, SimulatedTransport
from .smtp import SmtpTransport

__all__ = [
    "Transport",
    "BlockingTransport",
    "TransportResult",
    "SmtpTransport",
    "HttpTransport",
    "LogTransport",
    "SimulatedTransport",
    "SIMULATED_FAILURE",
    "build_transport",
    "TransportError",
    "TransportConfigurationError",
    "SMTPDeliveryError",
    "HTTPDeliveryError",
]
