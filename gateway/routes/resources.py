"""
Placeholder resource handler groups.

Real deployments pass their own routers to create_app(). These answer
GET on the collection root with an empty list and the request timestamp,
which is enough to show a request arriving sanitized, rate-checked and
instrumented.
"""

from fastapi import APIRouter, Depends

from gateway.context import RequestContext, get_request_context
from gateway.schemas import ErrorResponse, ResourceIndexResponse


def build_resource_router(name: str) -> APIRouter:
    router = APIRouter(tags=[name.capitalize()])

    @router.get(
        "",
        response_model=ResourceIndexResponse,
        responses={
            429: {"description": "Rate limit exceeded", "model": ErrorResponse},
            500: {"description": "Server error", "model": ErrorResponse},
        },
        summary=f"List {name}",
    )
    @router.get("/", response_model=ResourceIndexResponse, include_in_schema=False)
    async def list_items(
        context: RequestContext = Depends(get_request_context),
    ) -> ResourceIndexResponse:
        return ResourceIndexResponse(resource=name, requested_time=context.requested_time)

    return router
