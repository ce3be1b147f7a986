"""
Gateway — Application Error Hierarchy
======================================

What:  Defines the failure values that flow to the global error handler.
Why:   Every failure that reaches a client must be classified as either
       operational (anticipated, safe to describe) or a programming defect
       (anything else). Carrying that classification on the exception keeps
       the decision with the code that raised it.
How:   Each exception carries a message, an HTTP status code, an
       is_operational flag and an optional context dict for operator logs.
Who:   Raised by pipeline stages, the 404 fallback and resource handlers;
       caught only by the error boundary (gateway.middleware.error_handler).

Exception Hierarchy:
    AppError (base, operational unless told otherwise)
    ├── BadRequestError          → 400 Bad Request
    ├── NotFoundError            → 404 Not Found
    ├── PayloadTooLargeError     → 413 Payload Too Large
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── InternalError            → 500 (never operational)

Handlers raise AppError(message, status_code) for any other meaningful
client-facing status, e.g. AppError("Not allowed", 403).
"""

from typing import Any, Dict, Optional

RATE_LIMIT_MESSAGE = "Too many requests, please try again in an hour"
GENERIC_ERROR_MESSAGE = "Something went very wrong!"


class AppError(Exception):
    """
    Base failure value for the gateway.

    Attributes:
        message:        Client-facing description (rendered verbatim when operational)
        status_code:    HTTP status code (4xx/5xx)
        is_operational: True for anticipated failures; False marks a defect
        context:        Debug info for logs (never returned in production)
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        is_operational: bool = True,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.is_operational = is_operational
        self.context = context or {}
        super().__init__(self.message)

    @property
    def status(self) -> str:
        """'fail' for client errors, 'error' for everything else."""
        return "fail" if 400 <= self.status_code < 500 else "error"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"status_code={self.status_code}, is_operational={self.is_operational})"
        )


class BadRequestError(AppError):
    """Malformed input the client can fix (e.g. invalid JSON)."""

    def __init__(self, message: str = "Bad request", context: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, context=context)


class NotFoundError(AppError):
    """
    Raised when no router prefix matches the request.

    This is a normal outcome, not a defect: the message names the URL the
    client asked for so they can spot the typo.
    """

    def __init__(self, original_url: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["original_url"] = original_url
        super().__init__(
            f"can not find {original_url} on this server",
            status_code=404,
            context=ctx,
        )
        self.original_url = original_url


class PayloadTooLargeError(AppError):
    """Request body exceeded the configured body limit."""

    def __init__(self, limit: int, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["limit"] = limit
        super().__init__(
            f"Request body exceeds the {limit} byte limit",
            status_code=413,
            context=ctx,
        )
        self.limit = limit


class RateLimitExceededError(AppError):
    """
    Raised when a client exceeds its fixed-window request quota.

    The message is fixed on purpose: no retry-after computation, and no
    hint about how close the window is to resetting.
    """

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(RATE_LIMIT_MESSAGE, status_code=429, context=context)


class InternalError(AppError):
    """
    Normalized form of every unexpected failure.

    The message is the generic client-facing text; the original exception
    is chained as __cause__ and summarized in context for operator logs.
    """

    def __init__(
        self,
        message: str = GENERIC_ERROR_MESSAGE,
        status_code: int = 500,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, status_code=status_code, is_operational=False, context=context)
