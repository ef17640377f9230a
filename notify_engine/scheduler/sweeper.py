"""Sweep that reports delivery records stuck in the pending state.

A record stays pending when its transport call timed out or the sending
task was cancelled. The sweep only reports such records; it never changes
their status.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List

from notify_engine.domain.models import Notification
from notify_engine.history.store import HistoryStore
from notify_engine.logging import get_logger
from notify_engine.utils.timestamps import format_timestamp, utc_now

logger = get_logger(__name__, component="sweeper")


@dataclass
class SweepReport:
    """Result of one sweep run."""

    checked_at: datetime
    cutoff: datetime
    stale: List[Notification] = field(default_factory=list)

    @property
    def stale_count(self) -> int:
        return len(self.stale)


class PendingSweep:
    """Finds pending records older than ``stale_after_seconds``."""

    def __init__(
        self,
        history_store: HistoryStore,
        stale_after_seconds: int,
        clock: Callable[[], datetime] = utc_now,
    ):
        if stale_after_seconds <= 0:
            raise ValueError(f"stale_after_seconds must be positive, got: {stale_after_seconds}")

        self.history_store = history_store
        self.stale_after_seconds = stale_after_seconds
        self.clock = clock

    def run_once(self) -> SweepReport:
        """Run one sweep and log every stale record found."""
        now = self.clock()
        cutoff = now - timedelta(seconds=self.stale_after_seconds)
        stale = self.history_store.pending_older_than(cutoff)

        for record in stale:
            age_seconds = int((now - record.created_at).total_seconds())
            logger.warning(
                f"Notification {record.id} pending for {age_seconds}s",
                extra={
                    "event": "sweep.stale_pending",
                    "notification_id": record.id,
                    "recipient_id": record.recipient_id,
                    "event_type": record.event_type,
                    "created_at": format_timestamp(record.created_at),
                    "age_seconds": age_seconds,
                },
            )

        logger.info(
            f"Pending sweep complete: {len(stale)} stale records",
            extra={
                "event": "sweep.completed",
                "stale_count": len(stale),
                "cutoff": format_timestamp(cutoff),
            },
        )
        return SweepReport(checked_at=now, cutoff=cutoff, stale=stale)
