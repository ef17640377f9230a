"""Core domain models for templates, preferences, and delivery records.

This module defines the data structures shared by every component:
- Template: subject/body strings with placeholder and conditional markers
- Preference: a recipient's opt-in/opt-out configuration
- Notification: one recorded delivery attempt and its lifecycle status
- SendResult / NotificationStats: values returned to callers
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator, model_validator

from notify_engine.utils.timestamps import ensure_utc


class EventType(str, Enum):
    """Known event types. ``send`` also accepts arbitrary strings."""

    APPLICATION_STATUS = "application-status"
    INTERVIEW_SCHEDULED = "interview-scheduled"
    INTERVIEW_REMINDER = "interview-reminder"
    OFFER_LETTER = "offer-letter"
    REJECTION = "rejection"
    WELCOME = "welcome"


class Priority(str, Enum):
    """Delivery priority derived from the event type."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class NotificationStatus(str, Enum):
    """Lifecycle status of a delivery attempt."""

    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


class Frequency(str, Enum):
    """Preferred digest frequency (stored, not enforced)."""

    IMMEDIATE = "immediate"
    DAILY = "daily"
    WEEKLY = "weekly"


# Event types counted individually in NotificationStats.by_type
TRACKED_EVENT_TYPES = (
    EventType.APPLICATION_STATUS.value,
    EventType.INTERVIEW_SCHEDULED.value,
    EventType.INTERVIEW_REMINDER.value,
    EventType.OFFER_LETTER.value,
    EventType.REJECTION.value,
)

# Preference toggle consulted for each event type; unmapped types are never gated
EVENT_TOGGLE_KEYS = {
    EventType.APPLICATION_STATUS.value: "application_status",
    EventType.INTERVIEW_SCHEDULED.value: "interview_scheduled",
    EventType.INTERVIEW_REMINDER.value: "interview_reminder",
    EventType.OFFER_LETTER.value: "offer_letter",
    EventType.REJECTION.value: "rejection",
}

# Toggles that exist on a preference but gate no event type
INERT_TOGGLE_KEYS = ("marketing_emails", "weekly_digest")

KNOWN_TOGGLE_KEYS = frozenset(EVENT_TOGGLE_KEYS.values()) | frozenset(INERT_TOGGLE_KEYS)

# Allowed status changes; anything else is rejected by the history stores
STATUS_TRANSITIONS = {
    NotificationStatus.PENDING: {NotificationStatus.SENT, NotificationStatus.FAILED},
    NotificationStatus.SENT: {NotificationStatus.DELIVERED},
    NotificationStatus.DELIVERED: set(),
    NotificationStatus.FAILED: set(),
}

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Template(BaseModel):
    """Message template registered for one event type.

    Templates are frozen: the only way to change them is to re-register the
    whole template set.
    """

    id: str = Field(..., min_length=1, description="Stable template identifier")
    name: str = Field("", description="Human-readable template name")
    event_type: str = Field(..., min_length=1, description="Event type this template renders")
    subject: str = Field(..., description="Subject line template")
    html_body: str = Field("", description="HTML body template")
    text_body: str = Field("", description="Plain text body template")
    variables: List[str] = Field(
        default_factory=list, description="Variable names the template expects"
    )
    active: bool = Field(True, description="Inactive templates are skipped by lookup")

    model_config = {"frozen": True}

    @field_validator("id", "event_type")
    @classmethod
    def strip_identifier(cls, v: str) -> str:
        """Strip whitespace from identifier fields."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped


class QuietHours(BaseModel):
    """Do-not-disturb window in 24h ``HH:MM`` local time."""

    enabled: bool = False
    start: str = "22:00"
    end: str = "08:00"

    @field_validator("start", "end")
    @classmethod
    def validate_clock(cls, v: str) -> str:
        """Validate the value is a 24h HH:MM clock time."""
        if not _HHMM.match(v):
            raise ValueError(f"Expected HH:MM (24h clock), got: {v!r}")
        return v


class Preference(BaseModel):
    """Delivery preferences for one recipient.

    A missing toggle means "allowed"; only an explicit ``False`` blocks the
    mapped event type.
    """

    recipient_id: str = Field(..., min_length=1, description="Recipient identifier")
    email: str = Field(..., description="Delivery address")
    enabled: bool = Field(True, description="Global on/off switch")
    toggles: Dict[str, bool] = Field(
        default_factory=dict, description="Per-type toggles keyed by toggle name"
    )
    frequency: Frequency = Field(Frequency.IMMEDIATE, description="Digest frequency")
    quiet_hours: QuietHours = Field(default_factory=QuietHours)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Validate and normalize the delivery address."""
        try:
            return validate_email(v.strip(), check_deliverability=False).normalized
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email address '{v}': {e}") from e

    @field_validator("toggles")
    @classmethod
    def validate_toggle_keys(cls, v: Dict[str, bool]) -> Dict[str, bool]:
        """Reject toggle names that no event type or inert setting uses."""
        unknown = sorted(set(v) - KNOWN_TOGGLE_KEYS)
        if unknown:
            raise ValueError(
                f"Unknown preference toggles: {', '.join(unknown)}. "
                f"Known toggles: {', '.join(sorted(KNOWN_TOGGLE_KEYS))}"
            )
        return v

    model_config = {"json_schema_extra": {"example": {
        "recipient_id": "student-42",
        "email": "ada@example.com",
        "enabled": True,
        "toggles": {"interview_reminder": False},
        "frequency": "immediate",
        "quiet_hours": {"enabled": False, "start": "22:00", "end": "08:00"},
    }}}


class Notification(BaseModel):
    """One recorded delivery attempt.

    Created only after the policy check and template lookup pass; status
    then moves ``pending -> sent | failed`` and optionally
    ``sent -> delivered``.
    """

    id: str = Field(..., description="Unique notification id")
    recipient_id: str = Field(..., description="Recipient identifier")
    to: str = Field(..., description="Delivery address handed to the transport")
    subject: str
    body: str = Field("", description="Rendered HTML body")
    text_body: str = Field("", description="Rendered plain text body")
    event_type: str
    priority: Priority
    status: NotificationStatus = NotificationStatus.PENDING
    created_at: datetime
    updated_at: datetime
    sent_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("created_at", "updated_at", "sent_at", "delivered_at")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetimes are timezone-aware UTC."""
        return ensure_utc(v)

    @model_validator(mode="after")
    def check_lifecycle_fields(self):
        """Keep timestamps and error consistent with status."""
        if self.updated_at < self.created_at:
            raise ValueError("updated_at cannot precede created_at")

        has_sent_at = self.status in (NotificationStatus.SENT, NotificationStatus.DELIVERED)
        if has_sent_at != (self.sent_at is not None):
            raise ValueError(f"sent_at must be set iff status is sent or delivered (status={self.status.value})")

        if (self.status == NotificationStatus.FAILED) != (self.error is not None):
            raise ValueError(f"error must be set iff status is failed (status={self.status.value})")

        if (self.status == NotificationStatus.DELIVERED) != (self.delivered_at is not None):
            raise ValueError(f"delivered_at must be set iff status is delivered (status={self.status.value})")

        return self


class SendResult(BaseModel):
    """Outcome of NotificationService.send(); never raised, always returned."""

    success: bool
    notification_id: Optional[str] = None
    error: Optional[str] = None


class NotificationStats(BaseModel):
    """Aggregate counters over recorded delivery attempts."""

    total: int = 0
    sent: int = 0
    failed: int = 0
    pending: int = 0
    by_type: Dict[str, int] = Field(
        default_factory=lambda: {event_type: 0 for event_type in TRACKED_EVENT_TYPES}
    )
    delivery_rate: float = 0.0
