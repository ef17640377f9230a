"""Append-only history of delivery attempts.

Records are never deleted. Each append gets a monotonically increasing
sequence number, which breaks ties between records created within the same
timestamp so that newest-first queries follow call order.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from notify_engine.domain.exceptions import (
    DuplicateNotificationError,
    InvalidStatusTransition,
    NotificationNotFoundError,
)
from notify_engine.domain.models import STATUS_TRANSITIONS, Notification, NotificationStatus
from notify_engine.utils.timestamps import ensure_utc, utc_now

DEFAULT_HISTORY_LIMIT = 50


def apply_transition(
    record: Notification,
    status: NotificationStatus,
    at: Optional[datetime] = None,
    error: Optional[str] = None,
) -> Notification:
    """Return a copy of ``record`` moved to ``status``.

    Sets the lifecycle fields that go with the new status: ``sent_at`` for
    sent, ``delivered_at`` for delivered, ``error`` for failed. ``updated_at``
    never moves before ``created_at``.

    Raises:
        InvalidStatusTransition: If the change is not an allowed forward move
    """
    status = NotificationStatus(status)
    if status not in STATUS_TRANSITIONS[record.status]:
        raise InvalidStatusTransition(record.id, record.status.value, status.value)

    moment = max(ensure_utc(at) if at else utc_now(), record.created_at)
    changes = {"status": status, "updated_at": moment}

    if status == NotificationStatus.SENT:
        changes["sent_at"] = moment
    elif status == NotificationStatus.DELIVERED:
        changes["delivered_at"] = moment
    elif status == NotificationStatus.FAILED:
        changes["error"] = error or "unknown transport error"

    return Notification.model_validate({**record.model_dump(), **changes})


class HistoryStore(ABC):
    """Storage contract for delivery attempt records."""

    @abstractmethod
    def append(self, record: Notification) -> Notification:
        """Append a new record.

        Raises:
            DuplicateNotificationError: If the id is already stored
        """

    @abstractmethod
    def update_status(
        self,
        notification_id: str,
        status: NotificationStatus,
        at: Optional[datetime] = None,
        error: Optional[str] = None,
    ) -> Notification:
        """Move a record forward in its lifecycle and return the new state.

        Raises:
            NotificationNotFoundError: If the id is unknown
            InvalidStatusTransition: If the change is not allowed
        """

    @abstractmethod
    def get(self, notification_id: str) -> Optional[Notification]:
        """Return one record by id, or None."""

    @abstractmethod
    def query(self, recipient_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[Notification]:
        """Return a recipient's records, newest first, at most ``limit``."""

    @abstractmethod
    def all(self, recipient_id: Optional[str] = None) -> List[Notification]:
        """Return every record (optionally for one recipient) in append order."""

    @abstractmethod
    def pending_older_than(self, cutoff: datetime) -> List[Notification]:
        """Return pending records created before ``cutoff``, oldest first."""


@dataclass
class _Entry:
    sequence: int
    record: Notification


class InMemoryHistoryStore(HistoryStore):
    """List-backed history store guarded by a single lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, _Entry] = {}
        self._next_sequence = 0

    def append(self, record: Notification) -> Notification:
        stored = record.model_copy(deep=True)
        with self._lock:
            if stored.id in self._entries:
                raise DuplicateNotificationError(f"Notification {stored.id} already recorded")
            self._entries[stored.id] = _Entry(self._next_sequence, stored)
            self._next_sequence += 1
        return stored.model_copy(deep=True)

    def update_status(
        self,
        notification_id: str,
        status: NotificationStatus,
        at: Optional[datetime] = None,
        error: Optional[str] = None,
    ) -> Notification:
        with self._lock:
            entry = self._entries.get(notification_id)
            if entry is None:
                raise NotificationNotFoundError(f"Notification {notification_id} not found")
            entry.record = apply_transition(entry.record, status, at, error)
            return entry.record.model_copy(deep=True)

    def get(self, notification_id: str) -> Optional[Notification]:
        with self._lock:
            entry = self._entries.get(notification_id)
            return entry.record.model_copy(deep=True) if entry else None

    def query(self, recipient_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[Notification]:
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got: {limit}")

        with self._lock:
            entries = [e for e in self._entries.values() if e.record.recipient_id == recipient_id]

        entries.sort(key=lambda e: (e.record.created_at, e.sequence), reverse=True)
        return [e.record.model_copy(deep=True) for e in entries[:limit]]

    def all(self, recipient_id: Optional[str] = None) -> List[Notification]:
        with self._lock:
            entries = sorted(self._entries.values(), key=lambda e: e.sequence)

        return [
            e.record.model_copy(deep=True)
            for e in entries
            if recipient_id is None or e.record.recipient_id == recipient_id
        ]

    def pending_older_than(self, cutoff: datetime) -> List[Notification]:
        cutoff = ensure_utc(cutoff)
        return [
            record
            for record in self.all()
            if record.status == NotificationStatus.PENDING and record.created_at < cutoff
        ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
