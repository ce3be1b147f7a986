"""
Gateway — Body Parser Stage
============================

What:  Reads the raw request body, enforces the size limit, parses JSON and
       the query string, and creates the RequestContext.
Why:   Sanitization can only clean structured data, so parsing has to
       happen first (parse → sanitize → route).
How:   Pure ASGI middleware. The body is drained from `receive` once and
       replayed to downstream stages, so handlers can still call
       `await request.json()`.

Failure modes (raised, handled by the error boundary):
    Content-Length or streamed size over the limit → PayloadTooLargeError (413)
    Malformed JSON with a JSON content type         → BadRequestError (400)
    Client disconnected while sending the body      → ClientDisconnect
"""

import json
import logging
from typing import Any, Optional

from starlette.datastructures import Headers
from starlette.requests import ClientDisconnect
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from gateway.client_ip import resolve_client_ip
from gateway.config import Settings
from gateway.context import RequestContext, attach_context
from gateway.exceptions import BadRequestError, PayloadTooLargeError
from gateway.middleware.request_id import request_id_var
from gateway.querystring import parse_query

logger = logging.getLogger(__name__)


def is_json_content_type(content_type: Optional[str]) -> bool:
    if not content_type:
        return False
    media_type = content_type.split(";")[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def replay_body(body: bytes, receive: Receive) -> Receive:
    """
    Build a `receive` that yields `body` once, then only non-body messages.

    Upstream http.request messages are dropped after the replay because the
    body has already been consumed (or replaced) by an earlier stage.
    """
    replayed = False

    async def replay() -> Message:
        nonlocal replayed
        if not replayed:
            replayed = True
            return {"type": "http.request", "body": body, "more_body": False}
        while True:
            message = await receive()
            if message["type"] != "http.request":
                return message

    return replay


class BodyParserMiddleware:
    def __init__(self, app: ASGIApp, settings: Settings):
        self.app = app
        self.settings = settings

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        limit = self.settings.body_limit_bytes

        declared = headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > limit:
            raise PayloadTooLargeError(limit, context={"content_length": int(declared)})

        raw_body = await self._read_body(receive, limit)
        query_string = scope.get("query_string", b"").decode("latin-1")

        context = RequestContext(
            method=scope["method"],
            path=scope["path"],
            query_string=query_string,
            client_ip=resolve_client_ip(scope, self.settings.trust_proxy),
            request_id=request_id_var.get(""),
            raw_body=raw_body,
            query=parse_query(query_string),
            body=self._parse_body(raw_body, headers.get("content-type")),
        )
        attach_context(scope, context)

        await self.app(scope, replay_body(raw_body, receive), send)

    async def _read_body(self, receive: Receive, limit: int) -> bytes:
        chunks = []
        size = 0
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                raise ClientDisconnect()
            chunk = message.get("body", b"")
            size += len(chunk)
            if size > limit:
                raise PayloadTooLargeError(limit)
            chunks.append(chunk)
            if not message.get("more_body", False):
                return b"".join(chunks)

    def _parse_body(self, raw_body: bytes, content_type: Optional[str]) -> Any:
        if not raw_body or not is_json_content_type(content_type):
            return None
        try:
            return json.loads(raw_body)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.debug("Rejecting malformed JSON body: %s", e)
            raise BadRequestError(f"Invalid JSON body: {e}") from e
