"""HTTP transport for email/SMS provider APIs.

Posts each notification as JSON to a provider endpoint. Any 2xx response is
a successful hand-off; everything else is reported as a failure.
"""

from typing import Any, Dict, Optional

import requests

from notify_engine.domain.models import Notification
from notify_engine.logging import get_logger
from notify_engine.utils.timestamps import format_timestamp

from .base import BlockingTransport
from .exceptions import HTTPDeliveryError, TransportConfigurationError

logger = get_logger(__name__, component="transport")


class HttpTransport(BlockingTransport):
    """Deliver notifications by POSTing them to a provider endpoint."""

    name = "http"

    def __init__(
        self,
        endpoint: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        user_agent: str = "notify-engine/1.0",
        session: Optional[requests.Session] = None,
    ):
        """Initialize HTTP transport.

        Args:
            endpoint: Provider URL receiving the JSON payload
            api_key: Bearer token sent in the Authorization header
            timeout: Request timeout in seconds
            user_agent: User-Agent header
            session: Preconfigured requests session (for mocking)

        Raises:
            TransportConfigurationError: If the endpoint is not an http(s) URL
        """
        if not endpoint or not endpoint.startswith(("http://", "https://")):
            raise TransportConfigurationError(
                f"HTTP transport endpoint must be an http(s) URL, got: {endpoint!r}"
            )

        self.endpoint = endpoint
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent})
        if api_key:
            self._session.headers.update({"Authorization": f"Bearer {api_key}"})

    @staticmethod
    def build_payload(notification: Notification) -> Dict[str, Any]:
        """Build the JSON body posted to the provider."""
        return {
            "id": notification.id,
            "to": notification.to,
            "subject": notification.subject,
            "html": notification.body,
            "text": notification.text_body,
            "type": notification.event_type,
            "priority": notification.priority.value,
            "created_at": format_timestamp(notification.created_at),
            "metadata": notification.metadata,
        }

    def deliver(self, notification: Notification) -> None:
        """POST one notification to the provider.

        Raises:
            HTTPDeliveryError: On timeouts, connection errors, or non-2xx responses
        """
        try:
            response = self._session.post(
                self.endpoint,
                json=self.build_payload(notification),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise HTTPDeliveryError(f"Provider request timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise HTTPDeliveryError(f"Provider request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            body = (response.text or "")[:200]
            raise HTTPDeliveryError(
                f"Provider returned HTTP {response.status_code}: {body}",
                status_code=response.status_code,
            )

        logger.debug(
            f"Provider accepted {notification.id}",
            extra={"event": "transport.http.accepted", "status_code": response.status_code},
        )

    def close(self) -> None:
        self._session.close()
