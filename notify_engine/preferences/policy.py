"""Rule-based delivery policy over recipient preferences."""

from dataclasses import dataclass
from typing import Optional

from notify_engine.domain.models import EVENT_TOGGLE_KEYS, Preference

REASON_DISABLED = "notifications disabled"
REASON_TYPE_DISABLED = "type disabled by preference"


@dataclass(frozen=True)
class PolicyDecision:
    """Whether a send may proceed, and why not when it may not."""

    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = PolicyDecision(allowed=True)


def is_allowed(preference: Optional[Preference], event_type: str) -> PolicyDecision:
    """Evaluate a recipient's preference for one event type.

    Rules, first match wins:
    1. No preference registered: allowed.
    2. Global switch off: denied ("notifications disabled").
    3. The event type's toggle is explicitly False: denied
       ("type disabled by preference").
    4. Otherwise allowed. Event types without a toggle are always allowed.

    Quiet hours and frequency are not consulted.

    Args:
        preference: Recipient preference, or None when none has been set
        event_type: Event type of the send request

    Returns:
        PolicyDecision
    """
    if preference is None:
        return ALLOW

    if not preference.enabled:
        return PolicyDecision(allowed=False, reason=REASON_DISABLED)

    toggle_key = EVENT_TOGGLE_KEYS.get(event_type)
    if toggle_key is not None and preference.toggles.get(toggle_key) is False:
        return PolicyDecision(allowed=False, reason=REASON_TYPE_DISABLED)

    return ALLOW
