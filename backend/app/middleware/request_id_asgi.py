"""
Pure ASGI request-id middleware.

Reuses the caller's ``X-Request-ID`` when present, otherwise mints a ULID,
and exposes it to log records for the duration of the request.
"""

import logging

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.constants import REQUEST_ID_HEADER
from ..core.request_context import reset_request_id, set_request_id
from ..core.ulid_helper import generate_ulid

logger = logging.getLogger(__name__)

_MAX_REQUEST_ID_LENGTH = 128


class RequestIdMiddlewareASGI:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = ""
        header_name = REQUEST_ID_HEADER.lower().encode("latin-1")
        for name, value in scope.get("headers", []):
            if name == header_name:
                incoming = value.decode("latin-1").strip()
                break
        request_id = incoming[:_MAX_REQUEST_ID_LENGTH] or generate_ulid()

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers[REQUEST_ID_HEADER] = request_id
            await send(message)

        token = set_request_id(request_id)
        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            reset_request_id(token)
