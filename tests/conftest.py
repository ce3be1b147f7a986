"""
Gateway — Test Configuration (conftest.py)
===========================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Every HTTP test builds its own app with injected settings, limiter and
       probe routers, so no state leaks between tests.
How:   HTTPX AsyncClient over ASGITransport talks to the app in-process.

Fixture Hierarchy:
    ├── fake_clock:        controllable monotonic clock for the limiter
    ├── make_settings:     Settings factory (defaults: production, small limit)
    ├── probe_resources:   handler groups that echo, fail, or stream
    └── make_client:       async factory → (client, app) for a given config
"""

import os
from typing import Any, Dict

import pytest
import pytest_asyncio
from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from httpx import ASGITransport, AsyncClient

# Keep the import-time default app quiet and deterministic
os.environ.setdefault("LOG_LEVEL", "WARNING")

from gateway.config import Settings  # noqa: E402
from gateway.context import RequestContext, get_request_context  # noqa: E402
from gateway.exceptions import AppError  # noqa: E402
from gateway.main import create_app  # noqa: E402
from gateway.ratelimit import RateLimiter  # noqa: E402


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_probe_router() -> APIRouter:
    """Handler group used to observe what the pipeline delivers."""
    router = APIRouter()

    async def _snapshot(request: Request, context: RequestContext) -> Dict[str, Any]:
        raw = await request.body()
        return {
            "json": await request.json() if raw else None,
            "context_body": context.body,
            "query": context.query,
            "query_params": dict(request.query_params),
            "requested_time": context.requested_time,
            "state_requested_time": getattr(request.state, "requested_time", None),
            "client_ip": context.client_ip,
            "sanitized": context.sanitized,
            "headers": dict(request.headers),
        }

    @router.post("/echo")
    async def echo_post(request: Request, context: RequestContext = Depends(get_request_context)):
        return await _snapshot(request, context)

    @router.get("/echo")
    async def echo_get(request: Request, context: RequestContext = Depends(get_request_context)):
        return await _snapshot(request, context)

    @router.get("/items/{item_id}")
    async def get_item(item_id: str, context: RequestContext = Depends(get_request_context)):
        return {"item_id": item_id, "params": context.params}

    @router.get("/slugs/{slug}")
    async def get_slug(slug: str):
        return {"slug": slug}

    @router.get("/forbidden")
    async def forbidden():
        raise AppError("You do not have permission to perform this action", 403)

    @router.get("/boom")
    async def boom():
        raise ValueError("connection string postgres://admin:hunter2@db leaked")

    @router.get("/boom-sync")
    def boom_sync():
        raise RuntimeError("sync handler exploded")

    @router.get("/defect-apperror")
    async def defect_apperror():
        raise AppError("invariant violated in cart totals", 500, is_operational=False)

    @router.get("/large")
    async def large():
        return PlainTextResponse("gateway " * 1000)

    @router.get("/typed")
    async def typed(limit: int):
        return {"limit": limit}

    return router


def build_tag_router(tag: str) -> APIRouter:
    router = APIRouter()

    @router.get("/whoami")
    async def whoami():
        return {"router": tag}

    return router


_PROBES = object()


@pytest.fixture(name="build_tag_router")
def build_tag_router_fixture():
    return build_tag_router


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_settings():
    """
    Settings factory.

    Defaults: production mode, max=5 per 60s window, proxy trusted.
    `_env_file=None` keeps a developer's .env out of the tests.
    """

    def _make(**overrides) -> Settings:
        values = {
            "environment": "production",
            "rate_limit_max": 5,
            "rate_limit_window_ms": 60_000,
            "trust_proxy": True,
            "log_level": "WARNING",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def probe_resources():
    return [
        ("/api/v1/users", build_probe_router()),
        ("/api/v1/products", build_tag_router("products")),
    ]


@pytest_asyncio.fixture
async def make_client(make_settings, probe_resources, fake_clock):
    """
    Async factory yielding an HTTPX client bound to a freshly built app.

    Usage:
        client, app = await make_client(environment="development")
        response = await client.get("/api/v1/users/echo")
    """
    clients = []

    async def _make(resources=_PROBES, limiter=None, **settings_overrides):
        settings = make_settings(**settings_overrides)
        if limiter is None:
            limiter = RateLimiter(
                max_requests=settings.rate_limit_max,
                window_ms=settings.rate_limit_window_ms,
                clock=fake_clock,
            )
        app = create_app(
            settings=settings,
            resources=probe_resources if resources is _PROBES else resources,
            limiter=limiter,
        )
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client, app

    yield _make

    for client in clients:
        await client.aclose()
