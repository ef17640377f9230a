"""Per-recipient preference storage."""

import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from notify_engine.domain.models import Preference


class PreferenceStore(ABC):
    """Storage contract for recipient preferences.

    Preferences are replaced wholesale; there is no partial update.
    """

    @abstractmethod
    def get(self, recipient_id: str) -> Optional[Preference]:
        """Return the recipient's preference, or None if never set."""

    @abstractmethod
    def set(self, preference: Preference) -> None:
        """Store a preference, replacing any previous one for the recipient."""

    @abstractmethod
    def all(self) -> List[Preference]:
        """Return every stored preference."""


class InMemoryPreferenceStore(PreferenceStore):
    """Dictionary-backed preference store guarded by a lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._preferences: Dict[str, Preference] = {}

    def get(self, recipient_id: str) -> Optional[Preference]:
        with self._lock:
            preference = self._preferences.get(recipient_id)
        return preference.model_copy(deep=True) if preference else None

    def set(self, preference: Preference) -> None:
        stored = preference.model_copy(deep=True)
        with self._lock:
            self._preferences[stored.recipient_id] = stored

    def all(self) -> List[Preference]:
        with self._lock:
            preferences = list(self._preferences.values())
        return [p.model_copy(deep=True) for p in preferences]
