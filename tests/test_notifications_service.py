"""Unit tests for notification service.

Tests the NotificationService for:
- Complete send flow (policy, template, render, record, deliver)
- Preference denials that leave no trace
- Missing templates
- Transport failures, exceptions, timeouts and cancellation
- History and statistics queries
- Delivery confirmation
"""

import asyncio
import itertools

import pytest

from notify_engine.domain.exceptions import InvalidStatusTransition, NotificationNotFoundError
from notify_engine.domain.models import (
    NotificationStatus,
    Preference,
    Priority,
    Template,
)
from notify_engine.history.store import InMemoryHistoryStore
from notify_engine.notifications.service import (
    HISTORY_UNAVAILABLE,
    RECORD_FAILED,
    TEMPLATE_NOT_FOUND,
    NotificationService,
    priority_for,
)
from notify_engine.persistence.exceptions import PersistenceError
from notify_engine.templates.exceptions import TemplateRenderError
from notify_engine.templates.store import TemplateStore
from notify_engine.transports.base import TransportResult
from tests.helpers import FixedClock, HangingTransport, StubTransport

TEMPLATES = [
    Template(
        id="status-update",
        name="Status Update",
        event_type="application-status",
        subject="Update for {{position}}",
        html_body="<p>Hi {{candidateName}}</p>",
        text_body="Hi {{candidateName}}{{#nextSteps}}\nNext: {{nextSteps}}{{/nextSteps}}",
    ),
    Template(
        id="reminder",
        event_type="interview-reminder",
        subject="Interview in {{hoursUntil}} hours",
        text_body="See you soon",
    ),
]


def sequential_ids():
    counter = itertools.count(1)
    return lambda now: f"notif-{next(counter)}"


@pytest.fixture
def clock():
    """Deterministic clock."""
    return FixedClock()


@pytest.fixture
def transport():
    """Transport that succeeds unless scripted otherwise."""
    return StubTransport()


@pytest.fixture
def service(transport, clock):
    """Service with two registered templates and in-memory stores."""
    return NotificationService(
        transport=transport,
        template_store=TemplateStore(TEMPLATES),
        clock=clock,
        id_factory=sequential_ids(),
    )


class TestPriority:
    """Event type to priority mapping."""

    @pytest.mark.parametrize(
        "event_type,expected",
        [
            ("interview-reminder", Priority.HIGH),
            ("interview-scheduled", Priority.MEDIUM),
            ("offer-letter", Priority.MEDIUM),
            ("application-status", Priority.MEDIUM),
            ("rejection", Priority.MEDIUM),
            ("welcome", Priority.LOW),
            ("anything-else", Priority.LOW),
        ],
    )
    def test_priority_for(self, event_type, expected):
        assert priority_for(event_type) == expected


class TestSendSuccess:
    """Successful sends."""

    @pytest.mark.asyncio
    async def test_successful_send_records_sent(self, service, transport, clock):
        """A successful send returns the id and stores a sent record."""
        result = await service.send(
            "student-1",
            "application-status",
            {"candidateName": "Ada", "position": "SRE"},
        )

        assert result.success is True
        assert result.notification_id == "notif-1"
        assert result.error is None

        record = service.get_notification("notif-1")
        assert record.status == NotificationStatus.SENT
        assert record.sent_at == clock.now
        assert record.subject == "Update for SRE"
        assert record.body == "<p>Hi Ada</p>"
        assert record.text_body == "Hi Ada"
        assert record.priority == Priority.MEDIUM
        assert record.error is None

        assert len(transport.sent) == 1
        assert transport.sent[0].status == NotificationStatus.PENDING

    @pytest.mark.asyncio
    async def test_recipient_id_used_as_address_without_preference(self, service, transport):
        await service.send("student-1", "application-status", {})
        assert transport.sent[0].to == "student-1"

    @pytest.mark.asyncio
    async def test_preference_email_used_as_address(self, service, transport):
        service.set_preferences(Preference(recipient_id="student-1", email="ada@example.com"))

        await service.send("student-1", "application-status", {})

        assert transport.sent[0].to == "ada@example.com"

    @pytest.mark.asyncio
    async def test_metadata_stored_with_template_id(self, service):
        result = await service.send(
            "student-1", "application-status", {}, metadata={"application_id": "app-9"}
        )

        record = service.get_notification(result.notification_id)
        assert record.metadata == {"application_id": "app-9", "template_id": "status-update"}

    @pytest.mark.asyncio
    async def test_unresolved_placeholders_are_delivered_literally(self, service, transport):
        await service.send("student-1", "application-status", {"candidateName": "Ada"})
        assert transport.sent[0].subject == "Update for {{position}}"


class TestSendRejected:
    """Sends stopped before anything is recorded."""

    @pytest.mark.asyncio
    async def test_globally_disabled_recipient(self, service, transport):
        service.set_preferences(
            Preference(recipient_id="student-1", email="ada@example.com", enabled=False)
        )

        result = await service.send("student-1", "application-status", {})

        assert result.success is False
        assert result.notification_id is None
        assert result.error == "notifications disabled"
        assert transport.sent == []
        assert service.get_history("student-1") == []

    @pytest.mark.asyncio
    async def test_type_disabled_recipient(self, service, transport):
        service.set_preferences(
            Preference(
                recipient_id="student-1",
                email="ada@example.com",
                toggles={"interview_reminder": False},
            )
        )

        denied = await service.send("student-1", "interview-reminder", {"hoursUntil": 2})
        allowed = await service.send("student-1", "application-status", {})

        assert denied.error == "type disabled by preference"
        assert allowed.success is True
        assert len(transport.sent) == 1
        assert service.get_stats("student-1").total == 1

    @pytest.mark.asyncio
    async def test_missing_template(self, service, transport):
        result = await service.send("student-1", "offer-letter", {})

        assert result.success is False
        assert result.notification_id is None
        assert result.error == TEMPLATE_NOT_FOUND
        assert transport.sent == []
        assert service.get_history("student-1") == []

    @pytest.mark.asyncio
    async def test_inactive_template_is_not_found(self, transport, clock):
        inactive = Template(id="x", event_type="welcome", subject="Hi", active=False)
        service = NotificationService(transport, template_store=TemplateStore([inactive]), clock=clock)

        result = await service.send("student-1", "welcome", {})

        assert result.error == TEMPLATE_NOT_FOUND

    @pytest.mark.asyncio
    async def test_render_error_returned_not_raised(self, transport, clock):
        class FailingRenderer:
            def render(self, template, variables):
                raise TemplateRenderError("Failed to render template 'status-update'")

        service = NotificationService(
            transport,
            template_store=TemplateStore(TEMPLATES),
            renderer=FailingRenderer(),
            clock=clock,
        )

        result = await service.send("student-1", "application-status", {})

        assert result.success is False
        assert result.notification_id is None
        assert "status-update" in result.error
        assert transport.sent == []


class TestSendFailures:
    """Transport failures after the record exists."""

    @pytest.mark.asyncio
    async def test_transport_failure_recorded(self, service, clock):
        service.transport.outcomes = [TransportResult.failed("SMTP server unavailable")]

        result = await service.send("student-1", "application-status", {})

        assert result.success is False
        assert result.notification_id == "notif-1"
        assert result.error == "SMTP server unavailable"

        record = service.get_notification("notif-1")
        assert record.status == NotificationStatus.FAILED
        assert record.error == "SMTP server unavailable"
        assert record.sent_at is None

    @pytest.mark.asyncio
    async def test_transport_exception_recorded_as_failure(self, service):
        service.transport.outcomes = [ConnectionError("connection reset")]

        result = await service.send("student-1", "application-status", {})

        assert result.success is False
        assert result.error == "connection reset"
        assert service.get_notification(result.notification_id).status == NotificationStatus.FAILED

    @pytest.mark.asyncio
    async def test_transport_timeout_error_is_a_failure_not_a_timeout(self, service):
        service.transport.outcomes = [TimeoutError()]

        result = await service.send("student-1", "application-status", {})

        assert result.error == "TimeoutError"
        assert service.get_notification(result.notification_id).status == NotificationStatus.FAILED

    @pytest.mark.asyncio
    async def test_failure_without_message_gets_generic_error(self, service):
        service.transport.outcomes = [TransportResult(success=False)]

        result = await service.send("student-1", "application-status", {})

        assert result.error == "unknown transport error"

    @pytest.mark.asyncio
    async def test_timeout_leaves_record_pending(self, clock):
        transport = HangingTransport()
        service = NotificationService(
            transport,
            template_store=TemplateStore(TEMPLATES),
            transport_timeout=0.05,
            clock=clock,
            id_factory=sequential_ids(),
        )

        result = await service.send("student-1", "application-status", {})

        assert result.success is False
        assert result.notification_id == "notif-1"
        assert result.error == "transport timed out after 0.05s"
        assert transport.cancelled is True

        record = service.get_notification("notif-1")
        assert record.status == NotificationStatus.PENDING
        assert service.get_stats().pending == 1

    @pytest.mark.asyncio
    async def test_cancellation_propagates_and_leaves_record_pending(self, clock):
        transport = HangingTransport()
        service = NotificationService(
            transport,
            template_store=TemplateStore(TEMPLATES),
            clock=clock,
            id_factory=sequential_ids(),
        )

        task = asyncio.create_task(service.send("student-1", "application-status", {}))
        await transport.started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert service.get_notification("notif-1").status == NotificationStatus.PENDING

    def test_non_positive_timeout_rejected(self, transport):
        with pytest.raises(ValueError, match="transport_timeout"):
            NotificationService(transport, transport_timeout=0)


class FailingAppendHistory(InMemoryHistoryStore):
    def append(self, record):
        raise PersistenceError(
            "Failed to record notification: (builtins.TypeError) "
            "[SQL: INSERT INTO notifications (id, subject) VALUES (?, ?)]"
        )


class FailingUpdateHistory(InMemoryHistoryStore):
    def update_status(self, notification_id, status, at=None, error=None):
        raise PersistenceError("Failed to update notification: [SQL: UPDATE notifications ...]")


class TestHistoryStoreFailures:
    """Errors raised by the history store."""

    @pytest.mark.asyncio
    async def test_append_failure_reports_no_id(self, transport, clock):
        """A record that was never stored has no id to report."""
        service = NotificationService(
            transport=transport,
            template_store=TemplateStore(TEMPLATES),
            history_store=FailingAppendHistory(),
            clock=clock,
            id_factory=sequential_ids(),
        )

        result = await service.send("student-1", "application-status", {"candidateName": "Ada"})

        assert result.success is False
        assert result.notification_id is None
        assert result.error == RECORD_FAILED
        assert transport.sent == []
        assert service.get_notification("notif-1") is None

    @pytest.mark.asyncio
    async def test_update_failure_keeps_id_and_hides_store_error(self, transport, clock):
        service = NotificationService(
            transport=transport,
            template_store=TemplateStore(TEMPLATES),
            history_store=FailingUpdateHistory(),
            clock=clock,
            id_factory=sequential_ids(),
        )

        result = await service.send("student-1", "application-status", {"candidateName": "Ada"})

        assert result.success is False
        assert result.notification_id == "notif-1"
        assert result.error == HISTORY_UNAVAILABLE
        assert "SQL" not in result.error
        assert service.get_notification("notif-1").status == NotificationStatus.PENDING


class TestConcurrentSends:
    """Independent sends running together."""

    @pytest.mark.asyncio
    async def test_concurrent_sends_get_distinct_records(self, clock):
        transport = StubTransport(delay=0.01)
        service = NotificationService(
            transport, template_store=TemplateStore(TEMPLATES), clock=clock
        )

        results = await asyncio.gather(
            *(service.send(f"student-{i % 2}", "application-status", {}) for i in range(10))
        )

        ids = {r.notification_id for r in results}
        assert len(ids) == 10
        assert all(r.success for r in results)
        assert service.get_stats().total == 10
        assert service.get_stats("student-0").total == 5


class TestQueries:
    """History, stats and delivery confirmation."""

    @pytest.mark.asyncio
    async def test_history_newest_first_with_limit(self, service, clock):
        for _ in range(3):
            await service.send("student-1", "application-status", {})
            clock.advance(minutes=1)

        history = service.get_history("student-1", limit=2)

        assert [r.id for r in history] == ["notif-3", "notif-2"]

    @pytest.mark.asyncio
    async def test_history_uses_service_default_limit(self, transport, clock):
        service = NotificationService(
            transport, template_store=TemplateStore(TEMPLATES), clock=clock, history_limit=2
        )
        for _ in range(4):
            await service.send("student-1", "application-status", {})

        assert len(service.get_history("student-1")) == 2

    @pytest.mark.asyncio
    async def test_stats_mix_of_outcomes(self, service):
        service.transport.outcomes = [
            TransportResult.ok(),
            TransportResult.failed("bounced"),
            TransportResult.ok(),
        ]
        for _ in range(3):
            await service.send("student-1", "application-status", {})
        await service.send("student-1", "interview-reminder", {"hoursUntil": 24})

        stats = service.get_stats("student-1")

        assert stats.total == 4
        assert stats.sent == 3
        assert stats.failed == 1
        assert stats.delivery_rate == 75.0
        assert stats.by_type["application-status"] == 3
        assert stats.by_type["interview-reminder"] == 1

    @pytest.mark.asyncio
    async def test_mark_delivered(self, service, clock):
        result = await service.send("student-1", "application-status", {})
        clock.advance(minutes=5)

        record = service.mark_delivered(result.notification_id)

        assert record.status == NotificationStatus.DELIVERED
        assert record.delivered_at == clock.now
        assert service.get_stats().delivery_rate == 100.0

    @pytest.mark.asyncio
    async def test_mark_delivered_requires_sent(self, service):
        service.transport.outcomes = [TransportResult.failed("bounced")]
        result = await service.send("student-1", "application-status", {})

        with pytest.raises(InvalidStatusTransition):
            service.mark_delivered(result.notification_id)

    def test_mark_delivered_unknown_id(self, service):
        with pytest.raises(NotificationNotFoundError):
            service.mark_delivered("notif-missing")

    def test_close_closes_transport(self, service, transport):
        service.close()
        assert transport.closed is True
