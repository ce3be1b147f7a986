"""
Gateway — Access Log Middleware
================================

What:  One log line per request: method, path, status, duration, client.
Why:   The development/production flag controls how chatty this is:
       development logs every request (like a dev console), production
       only logs 4xx/5xx so the log stays about problems.
How:   Wraps the rest of the pipeline and times it with perf_counter.
When:  Outside the error boundary, so the status logged is the final one.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from gateway.client_ip import resolve_client_ip
from gateway.config import Settings
from gateway.middleware.request_id import request_id_var

logger = logging.getLogger("gateway.access")


class AccessLogMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, settings: Settings):
        super().__init__(app)
        self.settings = settings

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        # 5xx → ERROR, 4xx → WARNING, everything else → INFO
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        if log_level == logging.INFO and not self.settings.is_development:
            return response

        client_ip = resolve_client_ip(request.scope, self.settings.trust_proxy)
        rid = request_id_var.get("")
        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            request.url.path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
