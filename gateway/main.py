"""
Gateway — FastAPI Application Factory
======================================

What:  Creates and configures the gateway application.
Why:   Pipeline order is the security property of this service. It is
       spelled out in one list here rather than spread over add_middleware
       calls (which run in reverse order of addition).
How:   create_app() returns a configured FastAPI instance. Settings, the
       rate limiter and the resource routers are injectable for tests.
Who:   uvicorn (gateway.main:app), `python -m gateway`, and the test suite.

Pipeline (outermost first; every request passes in this order):
    ┌────────────────────────────────────────────────────────────┐
    │ CORS → SecurityHeaders → RequestID → AccessLog             │
    │   → GlobalErrorHandler ─────────────── error boundary ──┐   │
    │       → BodyParser → Sanitization → RateLimit           │   │
    │       → GZip → Instrumentation                          │   │
    │       → Router (/api/v1/users | products | categories   │   │
    │                 | reports, /health)                     │   │
    │       → NotFound (catch-all)                            │   │
    │   ◄──────────── any failure short-circuits to ──────────┘   │
    └────────────────────────────────────────────────────────────┘

Ordering constraints:
    - Body parsing before sanitization: only structured data can be cleaned.
    - Sanitization before rate limiting and routing: nothing downstream
      ever sees a raw operator key or unescaped markup.
    - The error boundary wraps every stage that can fail, so a failure in
      any of them (or in a handler) skips the rest of the pipeline.
    - CORS, security headers and the request ID sit outside the boundary
      so error responses carry them as well.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Sequence, Tuple

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware import Middleware

from gateway import __version__
from gateway.config import Settings, get_settings
from gateway.context import sanitize_params
from gateway.errors import render_error
from gateway.exceptions import AppError
from gateway.middleware.access_log import AccessLogMiddleware
from gateway.middleware.body_parser import BodyParserMiddleware
from gateway.middleware.error_handler import GlobalErrorHandlerMiddleware
from gateway.middleware.instrumentation import InstrumentationMiddleware
from gateway.middleware.rate_limit import RateLimitMiddleware
from gateway.middleware.request_id import RequestIDMiddleware, request_id_var
from gateway.middleware.sanitize import SanitizationMiddleware
from gateway.middleware.security_headers import SecurityHeadersMiddleware
from gateway.ratelimit import RateLimiter
from gateway.routes import default_resources, fallback, health

logger = logging.getLogger(__name__)

Resources = Sequence[Tuple[str, APIRouter]]


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(settings: Settings) -> None:
    """
    Configure logging for the entire application.

    Called once during startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # uvicorn's access log duplicates gateway.access
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings
    setup_logging(settings)
    logger.info(
        "%s %s starting in %s mode (rate limit: %d requests / %dms, trust proxy: %s)",
        settings.app_name,
        __version__,
        settings.environment,
        settings.rate_limit_max,
        settings.rate_limit_window_ms,
        settings.trust_proxy,
    )

    yield

    app.state.rate_limiter.reset()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Pipeline
# ══════════════════════════════════════════════════════════════════════════

def build_pipeline(settings: Settings, limiter: RateLimiter) -> list:
    """
    The middleware stack in execution order (first entry runs first).

    Starlette wraps the list so that middleware[0] is the outermost layer.
    """
    return [
        Middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins_list,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=[
                "X-Request-ID",
                "X-RateLimit-Limit",
                "X-RateLimit-Remaining",
                "X-RateLimit-Reset",
            ],
        ),
        Middleware(SecurityHeadersMiddleware),
        Middleware(RequestIDMiddleware),
        Middleware(AccessLogMiddleware, settings=settings),
        Middleware(GlobalErrorHandlerMiddleware, settings=settings),
        Middleware(BodyParserMiddleware, settings=settings),
        Middleware(SanitizationMiddleware, settings=settings),
        Middleware(RateLimitMiddleware, limiter=limiter, trust_proxy=settings.trust_proxy),
        Middleware(GZipMiddleware, minimum_size=settings.gzip_minimum_size),
        Middleware(InstrumentationMiddleware),
    ]


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """
    Route errors raised inside the router through the same renderer.

    FastAPI ships default handlers for HTTPException and validation errors
    that would answer with {"detail": ...}; replacing them keeps one error
    body shape. AppErrors raised by handlers are rendered here too, so the
    response still travels back out through the inner stages (rate-limit
    headers, compression). Everything else, and anything raised by a
    middleware stage, propagates to GlobalErrorHandlerMiddleware.
    """

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        return render_error(exc, settings, request_id_var.get(""))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return render_error(exc, settings, request_id_var.get(""))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return render_error(exc, settings, request_id_var.get(""))


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    resources: Optional[Resources] = None,
    limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """
    Create and configure the gateway.

    Args:
        settings:  Configuration (defaults to the environment-loaded settings)
        resources: Ordered (prefix, router) pairs; first matching prefix wins
        limiter:   Rate limiter (defaults to one built from settings)
    """
    settings = settings or get_settings()
    if limiter is None:
        limiter = RateLimiter(
            max_requests=settings.rate_limit_max,
            window_ms=settings.rate_limit_window_ms,
        )
    if resources is None:
        resources = default_resources()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        debug=False,
        middleware=build_pipeline(settings, limiter),
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.rate_limiter = limiter

    register_exception_handlers(app, settings)

    # Path params appear only after routing; clean them before any handler
    for prefix, router in resources:
        app.include_router(router, prefix=prefix, dependencies=[Depends(sanitize_params)])
    app.include_router(health.router)

    # Must stay last: it matches every path
    app.include_router(fallback.router)

    return app


app = create_app()
