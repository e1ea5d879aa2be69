"""Client for the messaging collaborator that emails clients.

Templates are delivered by POSTing ``{booking_id}`` or ``{cancellation_id}``
to ``{base_url}/{template}``. Every call is bounded by the configured timeout.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import SecretStr

logger = logging.getLogger(__name__)

BOOKING_CONFIRMATION = "send-booking-confirmation"
CANCELLATION_NOTICE = "send-cancellation-notice"
PAYMENT_RECEIPT = "send-payment-receipt"


class NotificationError(RuntimeError):
    """Raised when the messaging collaborator rejects or drops a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotificationClient:
    """HTTP client posting notification requests to the messaging service."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str | SecretStr | None = None,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key
        self._timeout = timeout
        self._transport = transport

    def send(self, template: str, payload: dict[str, Any]) -> None:
        url = f"{self._base_url}/{template}"
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise NotificationError(f"Notification service unreachable: {exc}") from exc

        if response.status_code >= 400:
            raise NotificationError(
                f"Notification {template} rejected: {response.text[:200]}",
                status_code=response.status_code,
            )
        logger.debug("Notification %s accepted", template)


class FakeNotificationClient:
    """Records notifications instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self.error: NotificationError | None = None

    def send(self, template: str, payload: dict[str, Any]) -> None:
        self.sent.append((template, payload))
        if self.error is not None:
            raise self.error
