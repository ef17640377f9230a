"""Transports that never leave the process: logging and demo simulation."""

import asyncio
import random
from typing import Optional

from notify_engine.domain.models import Notification
from notify_engine.logging import get_logger

from .base import Transport, TransportResult

logger = get_logger(__name__, component="transport")

SIMULATED_FAILURE = "SMTP server unavailable"


class LogTransport(Transport):
    """Log each notification instead of delivering it. Always succeeds."""

    name = "log"

    async def send(self, notification: Notification) -> TransportResult:
        logger.info(
            f"Would send '{notification.subject}' to {notification.to}",
            extra={
                "event": "transport.log.sent",
                "notification_id": notification.id,
                "priority": notification.priority.value,
            },
        )
        return TransportResult.ok()


class SimulatedTransport(Transport):
    """Demo transport with artificial latency and random failures.

    With the defaults, roughly one send in ten fails with
    "SMTP server unavailable" after a one second delay. Pass ``seed`` for a
    reproducible outcome sequence.
    """

    name = "simulated"

    def __init__(
        self,
        success_rate: float = 0.9,
        latency_seconds: float = 1.0,
        seed: Optional[int] = None,
    ):
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError(f"success_rate must be between 0 and 1, got: {success_rate}")
        if latency_seconds < 0:
            raise ValueError(f"latency_seconds cannot be negative, got: {latency_seconds}")

        self.success_rate = success_rate
        self.latency_seconds = latency_seconds
        self._random = random.Random(seed)

    async def send(self, notification: Notification) -> TransportResult:
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)

        if self._random.random() < self.success_rate:
            return TransportResult.ok()
        return TransportResult.failed(SIMULATED_FAILURE)
