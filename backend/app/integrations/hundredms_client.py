"""100ms Video Platform Integration Client.

Provisions rooms for booked sessions through the 100ms REST API. Room
creation is best effort: the booking flow falls back to its own channel name
when the provider cannot be reached.
"""

from __future__ import annotations

import logging
import time
from typing import Any, cast
import uuid

import httpx
import jwt
from pydantic import SecretStr

logger = logging.getLogger(__name__)


class HundredMsError(RuntimeError):
    """Raised when the 100ms API responds with an error."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class HundredMsClient:
    """HTTP client for the 100ms REST API."""

    def __init__(
        self,
        *,
        access_key: str,
        app_secret: str | SecretStr,
        base_url: str = "https://api.100ms.live/v2",
        template_id: str | None = None,
        group_template_id: str | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._access_key = access_key
        self._app_secret = (
            app_secret.get_secret_value() if isinstance(app_secret, SecretStr) else app_secret
        )
        self._base_url = base_url.rstrip("/")
        self._template_id = template_id
        self._group_template_id = group_template_id or template_id
        self._timeout = timeout
        self._transport = transport
        self._mgmt_token: str | None = None
        self._mgmt_token_refresh_at: float = 0.0

    def _generate_management_token(self) -> str:
        """Generate a management token for server-to-server API calls.

        This is a JWT signed with HS256 using our app_secret.
        """
        now = int(time.time())
        payload = {
            "access_key": self._access_key,
            "type": "management",
            "version": 2,
            "jti": str(uuid.uuid4()),
            "iat": now,
            "nbf": now,
            "exp": now + 3600,
        }
        token: str = jwt.encode(payload, self._app_secret, algorithm="HS256")
        return token

    def _get_management_token(self) -> str:
        """Return a cached management token, refreshing before expiry."""
        now = time.monotonic()
        if self._mgmt_token is None or now >= self._mgmt_token_refresh_at:
            self._mgmt_token = self._generate_management_token()
            # Token lifetime is 60 minutes; rotate after 50.
            self._mgmt_token_refresh_at = now + (50 * 60)
        return self._mgmt_token

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated request to the 100ms API."""
        url = f"{self._base_url}/{path.lstrip('/')}"
        headers = {
            "Authorization": f"Bearer {self._get_management_token()}",
            "Content-Type": "application/json",
        }

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.request(method, url, headers=headers, json=json_body)
        except httpx.HTTPError as exc:
            logger.error("100ms API unreachable for %s %s: %s", method, path, exc)
            raise HundredMsError(message=f"100ms API unreachable: {exc}") from exc

        if response.status_code >= 400:
            try:
                parsed_body = response.json()
            except ValueError:
                parsed_body = None
            error_body = parsed_body if isinstance(parsed_body, dict) else {}
            message = error_body.get("message") or response.text[:500]
            logger.error(
                "100ms API error %s for %s %s: %s",
                response.status_code,
                method,
                path,
                response.text[:500],
            )
            raise HundredMsError(
                message=message,
                status_code=response.status_code,
                details=error_body.get("details"),
            )

        return cast(dict[str, Any], response.json())

    def create_room(self, *, name: str, is_group: bool = False) -> dict[str, Any]:
        """Create a 100ms room for a session.

        If a room with the same name already exists, 100ms returns the existing
        room, so retries with the same channel name are idempotent.
        """
        body: dict[str, Any] = {"name": name}
        template_id = self._group_template_id if is_group else self._template_id
        if template_id:
            body["template_id"] = template_id
        return self._request("POST", "rooms", json_body=body)


class FakeHundredMsClient:
    """In-memory stub used when 100ms is not configured."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.error: HundredMsError | None = None

    def create_room(self, *, name: str, is_group: bool = False) -> dict[str, Any]:
        self.calls.append({"method": "create_room", "name": name, "is_group": is_group})
        if self.error is not None:
            raise self.error
        return {"id": f"fake_room_{uuid.uuid4().hex[:12]}", "name": name, "enabled": True}
