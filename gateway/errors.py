"""
Gateway — Error Classification & Rendering
===========================================

What:  Turns any exception into the AppError shape, then into a JSON response.
Why:   A single formatting point guarantees that every error path (pipeline
       stage, 404 fallback, handler, framework-level HTTP error) produces the
       same body, and that internal detail only leaves the process in
       development mode.
How:   normalize() classifies; render_error() formats per environment.
       Both the error boundary middleware and the FastAPI exception
       handlers call render_error().

Response shapes:
    development (any error):
        {"status", "message", "error": {...}, "stack": [...]}
    production, operational:
        {"status": "fail", "message": "<verbatim>"}
    production, non-operational:
        {"status": "error", "message": "Something went very wrong!"}  → 500
"""

import logging
import traceback
from typing import Any, Dict, Optional

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gateway.config import Settings
from gateway.exceptions import GENERIC_ERROR_MESSAGE, AppError, InternalError

logger = logging.getLogger(__name__)


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Invalid input data. " + ". ".join(parts)


def normalize(exc: BaseException) -> AppError:
    """
    Classify a failure into the AppError shape.

    Operational AppErrors pass through untouched. Framework HTTP errors in the
    4xx range (405, for example) are anticipated and become operational.
    Everything else is a defect: it becomes an InternalError chained to the
    original exception so the traceback survives for the operator log.
    """
    if isinstance(exc, AppError) and exc.is_operational:
        return exc

    if isinstance(exc, RequestValidationError):
        return AppError(
            _describe_validation_errors(exc),
            status_code=400,
            context={"errors": exc.errors()},
        )

    if isinstance(exc, StarletteHTTPException):
        if 400 <= exc.status_code < 500:
            return AppError(str(exc.detail), status_code=exc.status_code)
        error = InternalError(status_code=exc.status_code, context={"detail": exc.detail})
        error.__cause__ = exc
        return error

    if isinstance(exc, InternalError):
        return exc

    context: Dict[str, Any] = {"type": type(exc).__name__, "detail": str(exc)}
    status_code = 500
    if isinstance(exc, AppError):
        # Explicitly marked non-operational: keep its 5xx status if it has one
        context["detail"] = exc.message
        context.update(exc.context)
        if exc.status_code >= 500:
            status_code = exc.status_code
    error = InternalError(status_code=status_code, context=context)
    error.__cause__ = exc
    return error


def _original(error: AppError) -> BaseException:
    return error.__cause__ if error.__cause__ is not None else error


def _log_error(error: AppError, request_id: str) -> None:
    if error.is_operational:
        logger.warning(
            "[%s] %d %s: %s", request_id, error.status_code, type(error).__name__, error.message
        )
        return
    original = _original(error)
    logger.error(
        "[%s] Unexpected error: %s: %s | Context: %s",
        request_id,
        type(original).__name__,
        original,
        error.context,
        exc_info=(type(original), original, original.__traceback__),
    )


def build_error_body(error: AppError, settings: Settings) -> Dict[str, Any]:
    """Body for an already-normalized error."""
    if settings.is_development:
        original = _original(error)
        message = error.message if error.is_operational else str(original) or error.message
        return {
            "status": error.status,
            "message": message,
            "error": {
                "type": type(original).__name__,
                "status_code": error.status_code,
                "is_operational": error.is_operational,
                "context": _jsonable(error.context),
            },
            "stack": traceback.format_exception(
                type(original), original, original.__traceback__
            ),
        }

    if error.is_operational:
        return {"status": error.status, "message": error.message}

    return {"status": "error", "message": GENERIC_ERROR_MESSAGE}


def render_error(
    exc: BaseException,
    settings: Settings,
    request_id: Optional[str] = None,
) -> JSONResponse:
    """Normalize, log and format a failure. Always returns a finished response."""
    rid = request_id or ""
    error = normalize(exc)
    _log_error(error, rid)

    status_code = error.status_code
    if settings.is_production and not error.is_operational:
        status_code = 500

    headers = {"X-Request-ID": rid} if rid else None
    return JSONResponse(
        status_code=status_code,
        content=build_error_body(error, settings),
        headers=headers,
    )


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return repr(value)
