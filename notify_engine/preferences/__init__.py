"""Recipient preferences and the delivery policy evaluated against them."""

from .policy import (
    REASON_DISABLED,
    REASON_TYPE_DISABLED,
    PolicyDecision,
    is_allowed,
)
from .store import InMemoryPreferenceStore, PreferenceStore

__all__ = [
    "PreferenceStore",
    "InMemoryPreferenceStore",
    "PolicyDecision",
    "is_allowed",
    "REASON_DISABLED",
    "REASON_TYPE_DISABLED",
]
