"""Tests for notification statistics."""

from datetime import datetime, timezone

import pytest

from notify_engine.domain.models import (
    TRACKED_EVENT_TYPES,
    Notification,
    NotificationStats,
    Priority,
)
from notify_engine.history import compute_stats, delivery_rate

NOW = datetime(2025, 3, 10, 9, 0, 0, tzinfo=timezone.utc)


def make_record(index, status="sent", event_type="application-status"):
    fields = {"status": status}
    if status in ("sent", "delivered"):
        fields["sent_at"] = NOW
    if status == "delivered":
        fields["delivered_at"] = NOW
    if status == "failed":
        fields["error"] = "SMTP server unavailable"

    return Notification(
        id=f"n{index}",
        recipient_id="student-1",
        to="ada@example.com",
        subject="Subject",
        event_type=event_type,
        priority=Priority.MEDIUM,
        created_at=NOW,
        updated_at=NOW,
        **fields,
    )


def test_empty_history():
    stats = compute_stats([])

    assert stats == NotificationStats()
    assert stats.delivery_rate == 0.0
    assert stats.by_type == {event_type: 0 for event_type in TRACKED_EVENT_TYPES}


def test_seven_sent_three_failed():
    records = [make_record(i, "sent") for i in range(7)]
    records += [make_record(i + 7, "failed") for i in range(3)]

    stats = compute_stats(records)

    assert stats.total == 10
    assert stats.sent == 7
    assert stats.failed == 3
    assert stats.pending == 0
    assert stats.delivery_rate == 70.0


def test_delivered_counts_toward_rate_but_not_sent_counter():
    records = [make_record(0, "sent"), make_record(1, "delivered"), make_record(2, "pending")]

    stats = compute_stats(records)

    assert stats.total == 3
    assert stats.sent == 1
    assert stats.pending == 1
    assert stats.delivery_rate == 66.7


def test_by_type_covers_tracked_types_only():
    records = [
        make_record(0, event_type="interview-scheduled"),
        make_record(1, event_type="interview-scheduled"),
        make_record(2, event_type="rejection"),
        make_record(3, event_type="welcome"),
        make_record(4, event_type="custom-event"),
    ]

    stats = compute_stats(records)

    assert set(stats.by_type) == set(TRACKED_EVENT_TYPES)
    assert stats.by_type["interview-scheduled"] == 2
    assert stats.by_type["rejection"] == 1
    assert stats.by_type["offer-letter"] == 0
    assert stats.total == 5


@pytest.mark.parametrize(
    "numerator,total,expected",
    [
        (0, 0, 0.0),
        (0, 5, 0.0),
        (5, 5, 100.0),
        (1, 3, 33.3),
        (2, 3, 66.7),
        (1, 8, 12.5),
        (49, 400, 12.3),  # 12.25 rounds half up
    ],
)
def test_delivery_rate_rounding(numerator, total, expected):
    assert delivery_rate(numerator, total) == expected
