"""Transport port: the boundary to the real delivery provider.

The notification service only ever talks to a Transport. Production code
injects an SMTP or HTTP adapter; tests inject a deterministic double.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from notify_engine.domain.models import Notification
from notify_engine.logging import get_logger

from .exceptions import TransportError

logger = get_logger(__name__, component="transport")


@dataclass(frozen=True)
class TransportResult:
    """Outcome of a single delivery attempt reported by a transport."""

    success: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "TransportResult":
        return cls(success=True)

    @classmethod
    def failed(cls, error: str) -> "TransportResult":
        return cls(success=False, error=error)


class Transport(ABC):
    """Asynchronous delivery port.

    ``send`` may take arbitrarily long; the caller bounds it with a timeout
    and may cancel it. Implementations report provider failures through the
    returned TransportResult rather than by raising.
    """

    name = "transport"

    @abstractmethod
    async def send(self, notification: Notification) -> TransportResult:
        """Deliver a notification and report the outcome."""

    def close(self) -> None:
        """Release any resources held by the transport."""


class BlockingTransport(Transport):
    """Base for transports built on blocking client libraries.

    Subclasses implement ``deliver`` synchronously and raise TransportError
    on failure; ``send`` runs it in a worker thread so the event loop stays
    responsive and converts the error into a failed TransportResult.
    """

    async def send(self, notification: Notification) -> TransportResult:
        try:
            await asyncio.to_thread(self.deliver, notification)
        except TransportError as e:
            logger.warning(
                f"{self.name} delivery failed for {notification.id}: {e}",
                extra={"event": "transport.failure", "transport": self.name},
            )
            return TransportResult.failed(str(e))

        return TransportResult.ok()

    @abstractmethod
    def deliver(self, notification: Notification) -> None:
        """Deliver synchronously.

        Raises:
            TransportError: If the provider rejects or cannot receive the message
        """
