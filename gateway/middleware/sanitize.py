"""
Gateway — Sanitization Stage
=============================

What:  Cleans the parsed body, the query and header names in place before
       any later stage or handler can look at them.
Why:   See gateway.sanitize for the two injection classes handled.
How:   Pure ASGI middleware. Runs the pure sanitizers over the context,
       then rewrites what downstream stages will read from the scope:
       the replayed body bytes (and content-length), the query string and
       the header list.

Sanitization never rejects a request. Stripping is silent towards the
client; the operator gets a warning log line naming the client.
"""

import json
import logging
from typing import Any, List, Tuple

from starlette.types import ASGIApp, Receive, Scope, Send

from gateway.config import Settings
from gateway.context import context_from_scope
from gateway.exceptions import InternalError
from gateway.middleware.body_parser import replay_body
from gateway.querystring import encode_query
from gateway.sanitize import is_operator_key, sanitize

logger = logging.getLogger(__name__)


def _encode_json(value: Any) -> bytes:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


class SanitizationMiddleware:
    def __init__(self, app: ASGIApp, settings: Settings):
        self.app = app
        self.replace_with = settings.sanitize_replace_with

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        context = context_from_scope(scope)
        if context is None:
            # Body parsing must precede sanitization
            raise InternalError(context={"reason": "SanitizationMiddleware ran before BodyParserMiddleware"})

        body, body_found = sanitize(context.body, self.replace_with)
        query, query_found = sanitize(context.query, self.replace_with)
        headers, headers_found = self._clean_header_names(scope["headers"])

        if body_found or query_found or headers_found:
            logger.warning(
                "[%s] Stripped operator keys from %s request by %s (body=%s query=%s headers=%s)",
                context.request_id,
                context.path,
                context.client_ip,
                body_found,
                query_found,
                headers_found,
            )

        scope = dict(scope)
        if body != context.body:
            context.body = body
            new_body = _encode_json(body)
            headers = [(k, v) for k, v in headers if k.lower() != b"content-length"]
            headers.append((b"content-length", str(len(new_body)).encode("latin-1")))
            receive = replay_body(new_body, receive)

        # context.query_string keeps the raw value; it backs original_url
        if query != context.query:
            context.query = query
            scope["query_string"] = encode_query(query).encode("latin-1")

        scope["headers"] = headers
        context.sanitized = True

        await self.app(scope, receive, send)

    def _clean_header_names(
        self, headers: List[Tuple[bytes, bytes]]
    ) -> Tuple[List[Tuple[bytes, bytes]], bool]:
        kept = [(k, v) for k, v in headers if not is_operator_key(k.decode("latin-1"))]
        return kept, len(kept) != len(headers)
