"""
Gateway — Rate Limiting Stage
==============================

What:  Applies the fixed-window RateLimiter to every request.
Why:   Protects the resource handlers from abusive clients.
How:   Resolves the client identity, calls RateLimiter.hit() and either
       raises RateLimitExceededError (nothing downstream runs) or forwards
       the request and annotates the response with quota headers.
When:  After sanitization, before compression and routing.

Response headers on allowed requests:
    X-RateLimit-Limit:     max requests per window
    X-RateLimit-Remaining: requests left in the current window
    X-RateLimit-Reset:     seconds until the window resets

Rejected requests get the fixed 429 message from the error boundary and no
Retry-After header.
"""

import logging
import math

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from gateway.client_ip import resolve_client_ip
from gateway.context import context_from_scope
from gateway.exceptions import RateLimitExceededError
from gateway.ratelimit import RateLimiter

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Thread Safety:
        Safe for single-process async (uvicorn): RateLimiter.hit() runs with
        no await between reading and writing the counter. With several
        worker processes each keeps its own table.
    """

    def __init__(self, app: ASGIApp, limiter: RateLimiter, trust_proxy: bool = True):
        super().__init__(app)
        self.limiter = limiter
        self.trust_proxy = trust_proxy

    def _client_key(self, request: Request) -> str:
        context = context_from_scope(request.scope)
        if context is not None:
            return context.client_ip
        return resolve_client_ip(request.scope, self.trust_proxy)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        client_ip = self._client_key(request)
        decision = self.limiter.hit(client_ip)

        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %dms window",
                client_ip,
                decision.count,
                self.limiter.window_ms,
            )
            raise RateLimitExceededError(
                context={"client_ip": client_ip, "count": decision.count}
            )

        response = await call_next(request)

        now = self.limiter.clock()
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        response.headers["X-RateLimit-Reset"] = str(max(math.ceil(decision.reset_at - now), 0))
        return response
