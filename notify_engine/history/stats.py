"""Aggregate statistics over delivery attempt records."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from notify_engine.domain.models import (
    TRACKED_EVENT_TYPES,
    Notification,
    NotificationStats,
    NotificationStatus,
)


def delivery_rate(delivered_or_sent: int, total: int) -> float:
    """Percentage of attempts that reached the transport, to one decimal.

    Rounds half up (12.25 -> 12.3); 0.0 when there are no attempts.
    """
    if total == 0:
        return 0.0
    rate = Decimal(100 * delivered_or_sent) / Decimal(total)
    return float(rate.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def compute_stats(records: Iterable[Notification]) -> NotificationStats:
    """Count records by status and by tracked event type.

    ``sent`` counts only records whose status is exactly sent; delivered
    records are part of ``total`` and of the delivery rate numerator but are
    not broken out on their own. ``by_type`` always lists the five tracked
    event types and ignores any other type.

    Args:
        records: Records to aggregate (typically one recipient's history)

    Returns:
        NotificationStats
    """
    stats = NotificationStats()
    delivered = 0

    for record in records:
        stats.total += 1
        if record.status == NotificationStatus.SENT:
            stats.sent += 1
        elif record.status == NotificationStatus.FAILED:
            stats.failed += 1
        elif record.status == NotificationStatus.PENDING:
            stats.pending += 1
        elif record.status == NotificationStatus.DELIVERED:
            delivered += 1

        if record.event_type in TRACKED_EVENT_TYPES:
            stats.by_type[record.event_type] += 1

    stats.delivery_rate = delivery_rate(stats.sent + delivered, stats.total)
    return stats
