"""Notification service: preferences, templates, delivery and history.

This module provides the NotificationService class that orchestrates a
single notification: delivery policy check, template lookup and rendering,
history recording, and a timeout-bounded transport call.
"""

import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from notify_engine.config.models import LinksConfig
from notify_engine.domain.models import (
    EventType,
    Notification,
    NotificationStats,
    NotificationStatus,
    Preference,
    Priority,
    SendResult,
    Template,
)
from notify_engine.history.stats import compute_stats
from notify_engine.history.store import DEFAULT_HISTORY_LIMIT, HistoryStore, InMemoryHistoryStore
from notify_engine.logging import get_logger
from notify_engine.logging.context import log_context
from notify_engine.persistence.exceptions import PersistenceError
from notify_engine.preferences.policy import is_allowed
from notify_engine.preferences.store import InMemoryPreferenceStore, PreferenceStore
from notify_engine.templates.renderer import TemplateRenderer
from notify_engine.templates.store import TemplateStore
from notify_engine.transports.base import Transport, TransportResult
from notify_engine.utils.ids import new_interview_id, new_notification_id
from notify_engine.utils.timestamps import utc_now

from .models import InterviewDetails

logger = get_logger(__name__, component="notification")

TEMPLATE_NOT_FOUND = "template not found"
RECORD_FAILED = "failed to record notification"
HISTORY_UNAVAILABLE = "notification history unavailable"
DEFAULT_TRANSPORT_TIMEOUT = 30.0

# Priority per event type; anything not listed is low
PRIORITY_BY_EVENT_TYPE = {
    EventType.INTERVIEW_REMINDER.value: Priority.HIGH,
    EventType.INTERVIEW_SCHEDULED.value: Priority.MEDIUM,
    EventType.OFFER_LETTER.value: Priority.MEDIUM,
    EventType.APPLICATION_STATUS.value: Priority.MEDIUM,
    EventType.REJECTION.value: Priority.MEDIUM,
}


def priority_for(event_type: str) -> Priority:
    """Return the delivery priority for an event type."""
    return PRIORITY_BY_EVENT_TYPE.get(event_type, Priority.LOW)


class NotificationService:
    """Sends templated notifications and keeps their delivery history.

    Coordinates the entire flow of ``send``:
    1. Check recipient preferences (denied attempts leave no trace)
    2. Look up the active template for the event type
    3. Render subject and bodies
    4. Record the attempt as pending
    5. Deliver through the transport, bounded by ``transport_timeout``
    6. Record sent/failed and return a SendResult

    ``send`` never raises for delivery problems; only cancellation of the
    calling task propagates.
    """

    def __init__(
        self,
        transport: Transport,
        template_store: Optional[TemplateStore] = None,
        preference_store: Optional[PreferenceStore] = None,
        history_store: Optional[HistoryStore] = None,
        renderer: Optional[TemplateRenderer] = None,
        transport_timeout: float = DEFAULT_TRANSPORT_TIMEOUT,
        links: Optional[LinksConfig] = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[datetime], str] = new_notification_id,
    ):
        """Initialize notification service.

        Args:
            transport: Delivery transport
            template_store: Registered templates (empty store if None)
            preference_store: Recipient preferences (in-memory if None)
            history_store: Delivery history (in-memory if None)
            renderer: Template renderer (creates default if None)
            transport_timeout: Seconds a single transport call may take
            links: URLs used by the convenience senders
            history_limit: Default number of records returned by get_history
            clock: Source of the current UTC time
            id_factory: Builds a notification id from the creation time
        """
        if transport_timeout <= 0:
            raise ValueError(f"transport_timeout must be positive, got: {transport_timeout}")

        self.transport = transport
        self.template_store = template_store if template_store is not None else TemplateStore()
        self.preference_store = preference_store if preference_store is not None else InMemoryPreferenceStore()
        self.history_store = history_store if history_store is not None else InMemoryHistoryStore()
        self.renderer = renderer or TemplateRenderer()
        self.transport_timeout = transport_timeout
        self.links = links or LinksConfig()
        self.history_limit = history_limit
        self.clock = clock
        self.id_factory = id_factory

    def register_templates(self, templates: Iterable[Template]) -> None:
        """Replace the registered template set."""
        self.template_store.register(templates)

    def set_preferences(self, preference: Preference) -> None:
        """Store a recipient's preferences, replacing any previous ones."""
        self.preference_store.set(preference)
        logger.info(
            f"Preferences updated for {preference.recipient_id}",
            extra={
                "event": "preferences.updated",
                "recipient_id": preference.recipient_id,
                "enabled": preference.enabled,
            },
        )

    def get_preferences(self, recipient_id: str) -> Optional[Preference]:
        """Return a recipient's preferences, or None if never set."""
        return self.preference_store.get(recipient_id)

    async def send(
        self,
        recipient_id: str,
        event_type: str,
        variables: Optional[Mapping[str, Any]] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> SendResult:
        """Send one notification.

        Args:
            recipient_id: Recipient identifier
            event_type: Event type selecting the template (any string)
            variables: Variable bag rendered into the template
            metadata: Extra fields stored on the history record

        Returns:
            SendResult describing the outcome

        Raises:
            asyncio.CancelledError: If the calling task is cancelled; the
                record stays pending
        """
        variables = dict(variables or {})

        with log_context(recipient_id=recipient_id, event_type=event_type):
            record = None
            stored = False
            try:
                preference = self.preference_store.get(recipient_id)
                decision = is_allowed(preference, event_type)
                if not decision.allowed:
                    logger.info(
                        f"Notification blocked for {recipient_id}: {decision.reason}",
                        extra={"event": "notification.denied", "reason": decision.reason},
                    )
                    return SendResult(success=False, error=decision.reason)

                template = self.template_store.lookup(event_type)
                if template is None:
                    logger.warning(
                        f"No active template for event type '{event_type}'",
                        extra={"event": "notification.template_missing"},
                    )
                    return SendResult(success=False, error=TEMPLATE_NOT_FOUND)

                rendered = self.renderer.render(template, variables)

                now = self.clock()
                record = Notification(
                    id=self.id_factory(now),
                    recipient_id=recipient_id,
                    to=preference.email if preference else recipient_id,
                    subject=rendered.subject,
                    body=rendered.html_body,
                    text_body=rendered.text_body,
                    event_type=event_type,
                    priority=priority_for(event_type),
                    status=NotificationStatus.PENDING,
                    created_at=now,
                    updated_at=now,
                    metadata={**dict(metadata or {}), "template_id": template.id},
                )

                with log_context(notification_id=record.id):
                    try:
                        self.history_store.append(record)
                    except Exception as e:
                        logger.error(
                            f"Failed to record notification {record.id}: {e}",
                            exc_info=True,
                            extra={"event": "notification.error", "error_type": type(e).__name__},
                        )
                        return SendResult(success=False, error=RECORD_FAILED)
                    stored = True

                    logger.debug(
                        f"Recorded pending notification {record.id}",
                        extra={"event": "notification.pending", "template_id": template.id},
                    )
                    return await self._deliver(record)

            except asyncio.CancelledError:
                logger.warning(
                    "Send cancelled; record left pending",
                    extra={
                        "event": "notification.cancelled",
                        "notification_id": record.id if record else None,
                    },
                )
                raise
            except Exception as e:
                logger.error(
                    f"Unexpected error sending {event_type} notification to {recipient_id}: {e}",
                    exc_info=True,
                    extra={"event": "notification.error", "error_type": type(e).__name__},
                )
                # Store errors carry SQL text that must not reach callers
                if isinstance(e, PersistenceError):
                    error = HISTORY_UNAVAILABLE
                else:
                    error = str(e) or type(e).__name__
                return SendResult(
                    success=False,
                    notification_id=record.id if stored else None,
                    error=error,
                )

    async def _deliver(self, record: Notification) -> SendResult:
        """Call the transport and record the outcome."""
        try:
            outcome = await asyncio.wait_for(self._call_transport(record), self.transport_timeout)
        except asyncio.TimeoutError:
            error = f"transport timed out after {self.transport_timeout:g}s"
            logger.warning(
                f"Notification {record.id} left pending: {error}",
                extra={"event": "notification.timeout", "timeout_seconds": self.transport_timeout},
            )
            return SendResult(success=False, notification_id=record.id, error=error)

        if outcome.success:
            self.history_store.update_status(record.id, NotificationStatus.SENT, at=self.clock())
            logger.info(
                f"Notification {record.id} sent to {record.to}",
                extra={"event": "notification.sent", "priority": record.priority.value},
            )
            return SendResult(success=True, notification_id=record.id)

        updated = self.history_store.update_status(
            record.id, NotificationStatus.FAILED, at=self.clock(), error=outcome.error
        )
        logger.warning(
            f"Notification {record.id} failed: {updated.error}",
            extra={"event": "notification.failed"},
        )
        return SendResult(success=False, notification_id=record.id, error=updated.error)

    async def _call_transport(self, record: Notification) -> TransportResult:
        # Exceptions from the transport count as delivery failures, so a
        # TimeoutError reaching wait_for can only mean the deadline passed
        try:
            return await self.transport.send(record)
        except Exception as e:
            return TransportResult.failed(str(e) or type(e).__name__)

    def get_history(self, recipient_id: str, limit: Optional[int] = None) -> List[Notification]:
        """Return a recipient's records, newest first.

        Args:
            recipient_id: Recipient identifier
            limit: Maximum records returned (service default if None)
        """
        return self.history_store.query(
            recipient_id, self.history_limit if limit is None else limit
        )

    def get_stats(self, recipient_id: Optional[str] = None) -> NotificationStats:
        """Aggregate counters over all records, or one recipient's records."""
        return compute_stats(self.history_store.all(recipient_id))

    def get_notification(self, notification_id: str) -> Optional[Notification]:
        """Return one record by id, or None."""
        return self.history_store.get(notification_id)

    def mark_delivered(self, notification_id: str) -> Notification:
        """Record provider confirmation that a sent notification arrived.

        Raises:
            NotificationNotFoundError: If the id is unknown
            InvalidStatusTransition: If the record is not in the sent state
        """
        updated = self.history_store.update_status(
            notification_id, NotificationStatus.DELIVERED, at=self.clock()
        )
        logger.info(
            f"Notification {notification_id} delivered",
            extra={"event": "notification.delivered", "notification_id": notification_id},
        )
        return updated

    async def send_application_status_update(
        self,
        recipient_id: str,
        candidate_name: str,
        position: str,
        company: str,
        status: str,
        status_message: str,
        next_steps: Optional[str] = None,
        application_id: Optional[str] = None,
    ) -> SendResult:
        """Notify a candidate that their application status changed."""
        variables = _without_none(
            candidateName=candidate_name,
            position=position,
            company=company,
            status=status,
            statusMessage=status_message,
            nextSteps=next_steps,
            dashboardUrl=self.links.dashboard_url,
            applicationId=application_id,
        )
        metadata = _without_none(application_id=application_id, drive_id=application_id)
        return await self.send(
            recipient_id, EventType.APPLICATION_STATUS.value, variables, metadata
        )

    async def send_interview_scheduled(
        self,
        recipient_id: str,
        candidate_name: str,
        position: str,
        company: str,
        interview: InterviewDetails,
    ) -> SendResult:
        """Notify a candidate that an interview was scheduled."""
        variables = _without_none(
            candidateName=candidate_name,
            position=position,
            company=company,
            interviewDate=interview.date,
            interviewTime=interview.time,
            duration=interview.duration,
            interviewType=interview.type,
            interviewer=interview.interviewer,
            meetingLink=interview.meeting_link,
            location=interview.location,
            calendarUrl=self.links.calendar_url,
            rescheduleUrl=self.links.reschedule_url,
        )
        metadata = {"interview_id": new_interview_id(self.clock())}
        return await self.send(
            recipient_id, EventType.INTERVIEW_SCHEDULED.value, variables, metadata
        )

    async def send_interview_reminder(
        self,
        recipient_id: str,
        candidate_name: str,
        position: str,
        company: str,
        interview: InterviewDetails,
        hours_until: int,
    ) -> SendResult:
        """Remind a candidate of an upcoming interview."""
        variables = _without_none(
            candidateName=candidate_name,
            position=position,
            company=company,
            interviewDate=interview.date,
            interviewTime=interview.time,
            duration=interview.duration,
            interviewType=interview.type,
            meetingLink=interview.meeting_link,
            hoursUntil=hours_until,
        )
        metadata = {"interview_id": new_interview_id(self.clock())}
        return await self.send(
            recipient_id, EventType.INTERVIEW_REMINDER.value, variables, metadata
        )

    def close(self) -> None:
        """Release transport resources."""
        self.transport.close()


def _without_none(**values: Any) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}
