"""Database schema definition and ORM models.

Defines the SQLAlchemy tables for notification records and recipient
preferences, with conversions to and from the domain models.
"""

from sqlalchemy import JSON, Boolean, Column, Index, Integer, String, Text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from notify_engine.domain.models import Notification, Preference
from notify_engine.logging import get_logger
from notify_engine.utils.timestamps import format_timestamp, parse_timestamp

logger = get_logger(__name__, component="database")

Base = declarative_base()


def _store_timestamp(dt):
    # Fixed-width ISO strings sort chronologically, which the queries rely on
    return format_timestamp(dt, include_microseconds=True) if dt else None


class NotificationModel(Base):
    """ORM model for the notifications table.

    ``sequence`` records append order and breaks ties between records with
    the same ``created_at``.
    """

    __tablename__ = "notifications"

    sequence = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), unique=True, nullable=False)

    recipient_id = Column(String(255), nullable=False)
    to = Column(String(320), nullable=False)
    event_type = Column(String(100), nullable=False)
    priority = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False)

    subject = Column(Text, nullable=False)
    body = Column(Text, nullable=False, default="")
    text_body = Column(Text, nullable=False, default="")

    # Timestamps (stored as ISO 8601 strings)
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)
    sent_at = Column(String(50), nullable=True)
    delivered_at = Column(String(50), nullable=True)

    error = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    extra_metadata = Column("metadata", JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("idx_notifications_recipient", "recipient_id", "created_at"),
        Index("idx_notifications_status", "status", "created_at"),
    )

    def to_domain(self) -> Notification:
        """Convert ORM model to domain model."""
        return Notification(
            id=self.id,
            recipient_id=self.recipient_id,
            to=self.to,
            subject=self.subject,
            body=self.body,
            text_body=self.text_body,
            event_type=self.event_type,
            priority=self.priority,
            status=self.status,
            created_at=parse_timestamp(self.created_at),
            updated_at=parse_timestamp(self.updated_at),
            sent_at=parse_timestamp(self.sent_at),
            delivered_at=parse_timestamp(self.delivered_at),
            error=self.error,
            metadata=dict(self.extra_metadata or {}),
        )

    @classmethod
    def from_domain(cls, notification: Notification) -> "NotificationModel":
        """Create ORM model from domain model."""
        model = cls(id=notification.id)
        model.apply(notification)
        return model

    def apply(self, notification: Notification) -> None:
        """Copy every mutable field from the domain model onto this row."""
        self.recipient_id = notification.recipient_id
        self.to = notification.to
        self.event_type = notification.event_type
        self.priority = notification.priority.value
        self.status = notification.status.value
        self.subject = notification.subject
        self.body = notification.body
        self.text_body = notification.text_body
        self.created_at = _store_timestamp(notification.created_at)
        self.updated_at = _store_timestamp(notification.updated_at)
        self.sent_at = _store_timestamp(notification.sent_at)
        self.delivered_at = _store_timestamp(notification.delivered_at)
        self.error = notification.error
        # Values such as dates are stored in their JSON form
        self.extra_metadata = notification.model_dump(mode="json", include={"metadata"})["metadata"]


class PreferenceModel(Base):
    """ORM model for the preferences table (one row per recipient)."""

    __tablename__ = "preferences"

    recipient_id = Column(String(255), primary_key=True, nullable=False)
    email = Column(String(320), nullable=False)
    enabled = Column(Boolean, nullable=False, default=True)
    toggles = Column(JSON, nullable=False, default=dict)
    frequency = Column(String(20), nullable=False)
    quiet_hours = Column(JSON, nullable=False)

    def to_domain(self) -> Preference:
        """Convert ORM model to domain model."""
        return Preference(
            recipient_id=self.recipient_id,
            email=self.email,
            enabled=self.enabled,
            toggles=dict(self.toggles or {}),
            frequency=self.frequency,
            quiet_hours=self.quiet_hours,
        )

    def apply(self, preference: Preference) -> None:
        """Replace this row's settings with the given preference."""
        self.email = preference.email
        self.enabled = preference.enabled
        self.toggles = dict(preference.toggles)
        self.frequency = preference.frequency.value
        self.quiet_hours = preference.quiet_hours.model_dump()


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")
    Base.metadata.create_all(engine, checkfirst=True)

    from sqlalchemy import inspect

    tables = inspect(engine).get_table_names()
    logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
