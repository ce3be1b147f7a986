"""
Gateway — Request ID Middleware
================================

What:  Assigns a correlation ID to each request and returns it in a header.
Why:   Every log line and every error body for one request shares the ID,
       so a client can quote it and an operator can grep for it.
How:   Reuses a client-supplied X-Request-ID or generates a short UUID,
       stores it in a ContextVar and in request.state.
When:  Outside the error boundary, so error responses carry the header too.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Accepts X-Request-ID from the client, otherwise generates one."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 hex chars is enough to correlate and stays readable in logs
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
