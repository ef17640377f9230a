"""Utility functions for time handling and identifier generation."""

from .ids import new_interview_id, new_notification_id, random_suffix
from .timestamps import (
    ensure_utc,
    epoch_millis,
    format_timestamp,
    parse_timestamp,
    utc_now,
)

__all__ = [
    # Identifiers
    "new_notification_id",
    "new_interview_id",
    "random_suffix",
    # Timestamps
    "utc_now",
    "ensure_utc",
    "epoch_millis",
    "format_timestamp",
    "parse_timestamp",
]
