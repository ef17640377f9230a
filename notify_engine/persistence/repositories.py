"""SQL-backed history and preference stores.

Both stores implement the same contracts as their in-memory counterparts
and return domain models rather than ORM rows.
"""

import threading
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from notify_engine.domain.exceptions import DuplicateNotificationError, NotificationNotFoundError
from notify_engine.domain.models import Notification, NotificationStatus, Preference
from notify_engine.history.store import DEFAULT_HISTORY_LIMIT, HistoryStore, apply_transition
from notify_engine.logging import get_logger
from notify_engine.preferences.store import PreferenceStore
from notify_engine.utils.timestamps import format_timestamp

from .database import Database
from .exceptions import DataIntegrityError, PersistenceError
from .schema import NotificationModel, PreferenceModel

logger = get_logger(__name__, component="database")


class SqlHistoryStore(HistoryStore):
    """History store persisted in the ``notifications`` table."""

    def __init__(self, database: Database):
        """Initialize store.

        Args:
            database: Database the records are written to
        """
        self.database = database
        self._write_lock = threading.Lock()

    def append(self, record: Notification) -> Notification:
        try:
            with self._write_lock, self.database.session() as session:
                if self._find(session, record.id) is not None:
                    raise DuplicateNotificationError(f"Notification {record.id} already recorded")
                model = NotificationModel.from_domain(record)
                session.add(model)
                session.flush()
                return model.to_domain()
        except IntegrityError as e:
            raise DataIntegrityError(f"Failed to record notification {record.id}: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error recording notification {record.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to record notification: {e}") from e

    def update_status(
        self,
        notification_id: str,
        status: NotificationStatus,
        at: Optional[datetime] = None,
        error: Optional[str] = None,
    ) -> Notification:
        try:
            with self._write_lock, self.database.session() as session:
                model = self._find(session, notification_id)
                if model is None:
                    raise NotificationNotFoundError(f"Notification {notification_id} not found")
                updated = apply_transition(model.to_domain(), status, at, error)
                model.apply(updated)
                session.flush()
                return updated
        except SQLAlchemyError as e:
            logger.error(f"Error updating notification {notification_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update notification status: {e}") from e

    def get(self, notification_id: str) -> Optional[Notification]:
        try:
            with self.database.session() as session:
                model = self._find(session, notification_id)
                return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving notification {notification_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve notification: {e}") from e

    def query(self, recipient_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[Notification]:
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got: {limit}")

        stmt = (
            select(NotificationModel)
            .where(NotificationModel.recipient_id == recipient_id)
            .order_by(NotificationModel.created_at.desc(), NotificationModel.sequence.desc())
            .limit(limit)
        )
        return self._fetch(stmt, f"history for {recipient_id}")

    def all(self, recipient_id: Optional[str] = None) -> List[Notification]:
        stmt = select(NotificationModel).order_by(NotificationModel.sequence)
        if recipient_id is not None:
            stmt = stmt.where(NotificationModel.recipient_id == recipient_id)
        return self._fetch(stmt, "notifications")

    def pending_older_than(self, cutoff: datetime) -> List[Notification]:
        stmt = (
            select(NotificationModel)
            .where(
                NotificationModel.status == NotificationStatus.PENDING.value,
                NotificationModel.created_at < format_timestamp(cutoff, include_microseconds=True),
            )
            .order_by(NotificationModel.sequence)
        )
        return self._fetch(stmt, "pending notifications")

    @staticmethod
    def _find(session, notification_id: str) -> Optional[NotificationModel]:
        stmt = select(NotificationModel).where(NotificationModel.id == notification_id)
        return session.execute(stmt).scalar_one_or_none()

    def _fetch(self, stmt, description: str) -> List[Notification]:
        try:
            with self.database.session() as session:
                return [model.to_domain() for model in session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving {description}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve {description}: {e}") from e


class SqlPreferenceStore(PreferenceStore):
    """Preference store persisted in the ``preferences`` table."""

    def __init__(self, database: Database):
        self.database = database
        self._write_lock = threading.Lock()

    def get(self, recipient_id: str) -> Optional[Preference]:
        try:
            with self.database.session() as session:
                model = session.get(PreferenceModel, recipient_id)
                return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving preferences for {recipient_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve preferences: {e}") from e

    def set(self, preference: Preference) -> None:
        try:
            with self._write_lock, self.database.session() as session:
                model = session.get(PreferenceModel, preference.recipient_id)
                if model is None:
                    model = PreferenceModel(recipient_id=preference.recipient_id)
                    session.add(model)
                model.apply(preference)
        except SQLAlchemyError as e:
            logger.error(
                f"Error storing preferences for {preference.recipient_id}: {e}", exc_info=True
            )
            raise PersistenceError(f"Failed to store preferences: {e}") from e

    def all(self) -> List[Preference]:
        try:
            with self.database.session() as session:
                stmt = select(PreferenceModel).order_by(PreferenceModel.recipient_id)
                return [model.to_domain() for model in session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving preferences: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve preferences: {e}") from e
