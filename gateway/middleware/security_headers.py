"""Security headers middleware."""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add helmet-style security headers to every response.

    Headers already set by a handler are left alone. HSTS is only sent over
    HTTPS (a browser ignores it on plain HTTP anyway).
    """

    DEFAULT_HEADERS = {
        "Content-Security-Policy": (
            "default-src 'self'; base-uri 'self'; font-src 'self' https: data:; "
            "frame-ancestors 'self'; img-src 'self' data:; object-src 'none'; "
            "script-src 'self'; script-src-attr 'none'; "
            "style-src 'self' https: 'unsafe-inline'; upgrade-insecure-requests"
        ),
        "Cross-Origin-Opener-Policy": "same-origin",
        "Cross-Origin-Resource-Policy": "same-origin",
        "Origin-Agent-Cluster": "?1",
        "Referrer-Policy": "no-referrer",
        "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
        "X-Content-Type-Options": "nosniff",
        "X-DNS-Prefetch-Control": "off",
        "X-Download-Options": "noopen",
        "X-Frame-Options": "SAMEORIGIN",
        "X-Permitted-Cross-Domain-Policies": "none",
        "X-XSS-Protection": "0",
    }

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for header, value in self.DEFAULT_HEADERS.items():
            if header == "Strict-Transport-Security" and request.url.scheme != "https":
                continue
            if header not in response.headers:
                response.headers[header] = value
        return response
