"""Delivery attempt history and the statistics computed over it."""

from .stats import compute_stats, delivery_rate
from .store import (
    DEFAULT_HISTORY_LIMIT,
    HistoryStore,
    InMemoryHistoryStore,
    apply_transition,
)

__all__ = [
    "HistoryStore",
    "InMemoryHistoryStore",
    "apply_transition",
    "compute_stats",
    "delivery_rate",
    "DEFAULT_HISTORY_LIMIT",
]
