"""
Catch-all 404 route.

Registered after every resource router, for every method, so any request
that no prefix claimed ends here and becomes an operational NotFoundError.
"""

from fastapi import APIRouter, Request

from gateway.context import context_from_scope
from gateway.exceptions import NotFoundError

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

router = APIRouter()


def _original_url(request: Request) -> str:
    context = context_from_scope(request.scope)
    if context is not None:
        return context.original_url
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


@router.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
async def not_found(request: Request) -> None:
    raise NotFoundError(_original_url(request))
