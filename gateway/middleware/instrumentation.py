"""
Gateway — Instrumentation Stage
================================

Stamps the request with the time it entered the router, as an ISO-8601 UTC
string with millisecond precision (e.g. 2024-01-15T12:00:00.000Z).
Handlers read it as `context.requested_time` or `request.state.requested_time`.

This is the extension point for cross-cutting request metadata: anything
added here is visible to every resource handler.
"""

from datetime import datetime, timezone

from starlette.types import ASGIApp, Receive, Scope, Send

from gateway.context import context_from_scope


def utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class InstrumentationMiddleware:
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            requested_time = utc_timestamp()
            scope.setdefault("state", {})["requested_time"] = requested_time
            context = context_from_scope(scope)
            if context is not None:
                context.requested_time = requested_time
        await self.app(scope, receive, send)
