"""Tests for the SQLAlchemy-backed stores.

Tests:
- Database initialization (file and in-memory SQLite)
- SqlHistoryStore append, ordering, status transitions, stale lookup
- SqlPreferenceStore upsert and round-trip of nested fields
- Persistence across Database instances
"""

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import inspect, text

from notify_engine.domain.exceptions import (
    DuplicateNotificationError,
    InvalidStatusTransition,
    NotificationNotFoundError,
)
from notify_engine.domain.models import (
    Frequency,
    Notification,
    NotificationStatus,
    Preference,
    Priority,
    QuietHours,
    Template,
)
from notify_engine.notifications.service import NotificationService
from notify_engine.persistence import (
    Database,
    DatabaseConnectionError,
    SqlHistoryStore,
    SqlPreferenceStore,
    redact_url,
)
from notify_engine.persistence.schema import PreferenceModel
from notify_engine.templates.store import TemplateStore
from tests.helpers import StubTransport

BASE_TIME = datetime(2025, 3, 10, 9, 0, 0, 123456, tzinfo=timezone.utc)


def make_record(notification_id, recipient_id="student-1", created_at=BASE_TIME, **overrides):
    values = {
        "id": notification_id,
        "recipient_id": recipient_id,
        "to": "ada@example.com",
        "subject": "Interview Scheduled: SRE at Acme",
        "body": "<p>Hi</p>",
        "text_body": "Hi",
        "event_type": "interview-scheduled",
        "priority": Priority.MEDIUM,
        "created_at": created_at,
        "updated_at": created_at,
        "metadata": {"template_id": "interview-scheduled", "interview_id": "interview-1"},
    }
    values.update(overrides)
    return Notification(**values)


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'data' / 'notifications.db'}"


@pytest.fixture
def database(db_url):
    """File-backed database, closed after the test."""
    db = Database(db_url)
    yield db
    db.close()


@pytest.fixture
def history(database):
    return SqlHistoryStore(database)


@pytest.fixture
def preferences(database):
    return SqlPreferenceStore(database)


class TestDatabase:
    """Database initialization."""

    def test_creates_directory_and_tables(self, database, tmp_path):
        assert (tmp_path / "data").is_dir()
        tables = inspect(database.engine).get_table_names()
        assert "notifications" in tables
        assert "preferences" in tables

    def test_in_memory_database_shares_one_connection(self):
        db = Database("sqlite:///:memory:")
        try:
            store = SqlHistoryStore(db)
            store.append(make_record("n1"))
            assert store.get("n1") is not None
        finally:
            db.close()

    def test_session_rolls_back_on_error(self, database):
        with pytest.raises(RuntimeError):
            with database.session() as session:
                model = PreferenceModel(recipient_id="x")
                model.apply(Preference(recipient_id="x", email="x@example.com"))
                session.add(model)
                session.flush()
                raise RuntimeError("abort")

        with database.session() as session:
            count = session.execute(text("SELECT COUNT(*) FROM preferences")).scalar()
        assert count == 0

    def test_empty_url_rejected(self):
        with pytest.raises(DatabaseConnectionError):
            Database("")

    def test_unusable_url_rejected(self):
        with pytest.raises(DatabaseConnectionError):
            Database("notadialect://nowhere")

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("sqlite:///./data/notifications.db", "sqlite:///./data/notifications.db"),
            ("postgresql://app:secret@db:5432/notify", "postgresql://app:***@db:5432/notify"),
            ("postgresql://db/notify", "postgresql://db/notify"),
        ],
    )
    def test_redact_url(self, url, expected):
        assert redact_url(url) == expected


class TestSqlHistoryStore:
    """SqlHistoryStore."""

    def test_round_trip(self, history):
        record = make_record("n1")
        history.append(record)

        assert history.get("n1") == record

    def test_metadata_stored_in_json_form(self, history):
        record = make_record("n1", metadata={"when": date(2025, 1, 1), "round": 2})

        history.append(record)

        assert history.get("n1").metadata == {"when": "2025-01-01", "round": 2}

    @pytest.mark.asyncio
    async def test_send_with_date_metadata(self, history):
        """Metadata accepted in memory is also accepted by the SQL store."""
        service = NotificationService(
            transport=StubTransport(),
            template_store=TemplateStore(
                [Template(id="welcome", event_type="welcome", subject="Welcome {{name}}")]
            ),
            history_store=history,
        )

        result = await service.send("student-1", "welcome", {"name": "Ada"}, {"when": date(2025, 1, 1)})

        assert result.success is True
        record = service.get_notification(result.notification_id)
        assert record.status == NotificationStatus.SENT
        assert record.metadata == {"when": "2025-01-01", "template_id": "welcome"}

    def test_duplicate_rejected(self, history):
        history.append(make_record("n1"))

        with pytest.raises(DuplicateNotificationError):
            history.append(make_record("n1"))

        assert len(history.all()) == 1

    def test_query_newest_first_with_ties_in_append_order(self, history):
        history.append(make_record("old", created_at=BASE_TIME - timedelta(minutes=5)))
        history.append(make_record("tie-1"))
        history.append(make_record("tie-2"))
        history.append(make_record("other", recipient_id="student-2"))

        assert [r.id for r in history.query("student-1")] == ["tie-2", "tie-1", "old"]
        assert [r.id for r in history.query("student-1", limit=1)] == ["tie-2"]

    def test_negative_limit_rejected(self, history):
        with pytest.raises(ValueError):
            history.query("student-1", limit=-5)

    def test_status_transitions(self, history):
        history.append(make_record("n1"))

        sent = history.update_status("n1", NotificationStatus.SENT, at=BASE_TIME + timedelta(seconds=1))
        delivered = history.update_status(
            "n1", NotificationStatus.DELIVERED, at=BASE_TIME + timedelta(minutes=2)
        )

        assert sent.sent_at == BASE_TIME + timedelta(seconds=1)
        assert delivered.delivered_at == BASE_TIME + timedelta(minutes=2)
        assert history.get("n1") == delivered

    def test_failed_keeps_error(self, history):
        history.append(make_record("n1"))
        history.update_status("n1", NotificationStatus.FAILED, at=BASE_TIME, error="bounced")

        stored = history.get("n1")
        assert stored.status == NotificationStatus.FAILED
        assert stored.error == "bounced"

    def test_illegal_transition_leaves_row_unchanged(self, history):
        history.append(make_record("n1"))
        history.update_status("n1", NotificationStatus.FAILED, at=BASE_TIME, error="bounced")

        with pytest.raises(InvalidStatusTransition):
            history.update_status("n1", NotificationStatus.SENT)

        assert history.get("n1").status == NotificationStatus.FAILED

    def test_unknown_id(self, history):
        with pytest.raises(NotificationNotFoundError):
            history.update_status("missing", NotificationStatus.SENT)

    def test_pending_older_than(self, history):
        history.append(make_record("stale", created_at=BASE_TIME - timedelta(hours=1)))
        history.append(make_record("fresh"))
        history.append(make_record("done", created_at=BASE_TIME - timedelta(hours=2)))
        history.update_status("done", NotificationStatus.SENT)

        stale = history.pending_older_than(BASE_TIME - timedelta(minutes=10))

        assert [r.id for r in stale] == ["stale"]

    def test_all_filters_by_recipient(self, history):
        history.append(make_record("a", recipient_id="student-1"))
        history.append(make_record("b", recipient_id="student-2"))

        assert [r.id for r in history.all()] == ["a", "b"]
        assert [r.id for r in history.all("student-2")] == ["b"]

    def test_records_survive_reopen(self, db_url):
        first = Database(db_url)
        SqlHistoryStore(first).append(make_record("n1"))
        first.close()

        second = Database(db_url)
        try:
            assert SqlHistoryStore(second).get("n1").subject == "Interview Scheduled: SRE at Acme"
        finally:
            second.close()


class TestSqlPreferenceStore:
    """SqlPreferenceStore."""

    def test_get_unknown(self, preferences):
        assert preferences.get("nobody") is None

    def test_round_trip(self, preferences):
        preference = Preference(
            recipient_id="student-1",
            email="ada@example.com",
            toggles={"interview_reminder": False, "weekly_digest": True},
            frequency=Frequency.DAILY,
            quiet_hours=QuietHours(enabled=True, start="21:00", end="07:30"),
        )

        preferences.set(preference)

        assert preferences.get("student-1") == preference

    def test_set_replaces_existing(self, preferences):
        preferences.set(Preference(recipient_id="student-1", email="ada@example.com"))
        preferences.set(
            Preference(recipient_id="student-1", email="ada@work.example.com", enabled=False)
        )

        stored = preferences.get("student-1")
        assert stored.email == "ada@work.example.com"
        assert stored.enabled is False
        assert len(preferences.all()) == 1
