"""Registry of message templates keyed by event type."""

import threading
from typing import Iterable, List, Optional

from notify_engine.domain.models import Template
from notify_engine.logging import get_logger

logger = get_logger(__name__, component="templates")


class TemplateStore:
    """Holds the registered template set.

    Lookup is "first registered wins": when two active templates share an
    event type, the one registered earlier is returned.
    """

    def __init__(self, templates: Optional[Iterable[Template]] = None):
        self._lock = threading.Lock()
        self._templates: List[Template] = list(templates or [])

    def register(self, templates: Iterable[Template]) -> None:
        """Replace the registered template set wholesale.

        Args:
            templates: Templates in lookup priority order
        """
        new_templates = list(templates)
        with self._lock:
            self._templates = new_templates

        active = [t for t in new_templates if t.active]
        logger.info(
            f"Registered {len(new_templates)} templates ({len(active)} active)",
            extra={
                "event": "templates.registered",
                "template_count": len(new_templates),
                "active_count": len(active),
            },
        )

    def lookup(self, event_type: str) -> Optional[Template]:
        """Return the first active template for an event type, or None."""
        with self._lock:
            templates = self._templates

        for template in templates:
            if template.event_type == event_type and template.active:
                return template
        return None

    def all(self) -> List[Template]:
        """Return registered templates in registration order."""
        with self._lock:
            return list(self._templates)

    def __len__(self) -> int:
        with self._lock:
            return len(self._templates)
