"""Unit tests for timestamp and identifier utilities."""

import re
from datetime import datetime, timedelta, timezone

import pytest

from notify_engine.utils.ids import new_interview_id, new_notification_id, random_suffix
from notify_engine.utils.timestamps import (
    ensure_utc,
    epoch_millis,
    format_timestamp,
    parse_timestamp,
    utc_now,
)


class TestUtcNow:
    """Tests for utc_now function."""

    def test_returns_recent_utc_datetime(self):
        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)

        assert now.tzinfo == timezone.utc
        assert before <= now <= after


class TestEnsureUtc:
    """Tests for ensure_utc function."""

    def test_none(self):
        assert ensure_utc(None) is None

    def test_naive_datetime_treated_as_utc(self):
        result = ensure_utc(datetime(2025, 3, 10, 12, 0, 0))

        assert result.tzinfo == timezone.utc
        assert result.hour == 12

    def test_other_timezone_converted(self):
        """12:00 at UTC-5 is 17:00 UTC."""
        est = timezone(timedelta(hours=-5))
        result = ensure_utc(datetime(2025, 3, 10, 12, 0, 0, tzinfo=est))

        assert result.tzinfo == timezone.utc
        assert result.hour == 17


class TestFormatAndParse:
    """Tests for format_timestamp and parse_timestamp."""

    def test_format(self):
        dt = datetime(2025, 3, 10, 9, 5, 7, 42, tzinfo=timezone.utc)

        assert format_timestamp(dt) == "2025-03-10T09:05:07Z"
        assert format_timestamp(dt, include_microseconds=True) == "2025-03-10T09:05:07.000042Z"

    def test_format_none(self):
        assert format_timestamp(None) == ""

    def test_format_converts_to_utc(self):
        cet = timezone(timedelta(hours=1))
        assert format_timestamp(datetime(2025, 3, 10, 10, 0, tzinfo=cet)) == "2025-03-10T09:00:00Z"

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2025-03-10T09:05:07Z", datetime(2025, 3, 10, 9, 5, 7, tzinfo=timezone.utc)),
            ("2025-03-10T09:05:07.000042Z", datetime(2025, 3, 10, 9, 5, 7, 42, tzinfo=timezone.utc)),
            ("2025-03-10T09:05:07", datetime(2025, 3, 10, 9, 5, 7, tzinfo=timezone.utc)),
        ],
    )
    def test_parse(self, value, expected):
        assert parse_timestamp(value) == expected

    @pytest.mark.parametrize("value", [None, ""])
    def test_parse_empty(self, value):
        assert parse_timestamp(value) is None

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")

    def test_microsecond_strings_sort_chronologically(self):
        base = datetime(2025, 3, 10, 9, 0, 0, tzinfo=timezone.utc)
        stamps = [base + timedelta(microseconds=n) for n in (0, 5, 999999, 1000000)]

        formatted = [format_timestamp(dt, include_microseconds=True) for dt in stamps]

        assert formatted == sorted(formatted)

    def test_epoch_millis(self):
        assert epoch_millis(datetime(1970, 1, 1, 0, 0, 1, 500000, tzinfo=timezone.utc)) == 1500


class TestIdentifiers:
    """Tests for notification and interview ids."""

    def test_notification_id_format(self):
        now = datetime(2025, 3, 10, 9, 0, 0, tzinfo=timezone.utc)

        notification_id = new_notification_id(now)

        assert re.fullmatch(rf"notif-{epoch_millis(now)}-[0-9a-z]{{9}}", notification_id)

    def test_notification_ids_unique_within_same_millisecond(self):
        now = utc_now()
        ids = {new_notification_id(now) for _ in range(1000)}
        assert len(ids) == 1000

    def test_interview_id(self):
        now = datetime(2025, 3, 10, 9, 0, 0, tzinfo=timezone.utc)
        assert new_interview_id(now) == f"interview-{epoch_millis(now)}"

    def test_random_suffix(self):
        assert re.fullmatch(r"[0-9a-z]{12}", random_suffix(12))
