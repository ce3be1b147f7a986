"""
Gateway — Routes Package
=========================

Route Inventory:
    - resources.py: placeholder handler groups mounted under /api/v1/...
    - health.py:    GET /health (liveness probe)
    - fallback.py:  catch-all 404, registered after everything else

Resource handler groups are external collaborators. create_app() accepts
any ordered sequence of (prefix, APIRouter); the defaults below only make
the four prefixes answer so the pipeline can be exercised end to end.
Registration order is match order: the first matching prefix wins.
"""

from typing import List, Tuple

from fastapi import APIRouter

from gateway.routes.resources import build_resource_router

API_PREFIX = "/api/v1"

RESOURCE_NAMES = ("users", "products", "categories", "reports")


def default_resources() -> List[Tuple[str, APIRouter]]:
    return [(f"{API_PREFIX}/{name}", build_resource_router(name)) for name in RESOURCE_NAMES]
