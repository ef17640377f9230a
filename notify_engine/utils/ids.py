"""Identifier generation for notification records."""

import secrets
import string
from datetime import datetime
from typing import Optional

from .timestamps import epoch_millis, utc_now

_BASE36 = string.digits + string.ascii_lowercase


def random_suffix(length: int = 9) -> str:
    """Return a random lowercase base36 string."""
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def new_notification_id(now: Optional[datetime] = None) -> str:
    """Build a notification id of the form ``notif-<epoch ms>-<suffix>``.

    The millisecond timestamp keeps ids roughly time-ordered; the 9-character
    random suffix (36**9 values) keeps ids distinct for sends issued within
    the same millisecond.

    Args:
        now: Creation time (defaults to current UTC time)

    Returns:
        New notification id
    """
    moment = now or utc_now()
    return f"notif-{epoch_millis(moment)}-{random_suffix()}"


def new_interview_id(now: Optional[datetime] = None) -> str:
    """Build an interview correlation id of the form ``interview-<epoch ms>``."""
    moment = now or utc_now()
    return f"interview-{epoch_millis(moment)}"
