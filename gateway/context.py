"""
Gateway — Per-Request Context
==============================

What:  The mutable bag threaded through the pipeline for one request.
Why:   Stages need a shared place to put the parsed body, the resolved
       client address and the request timestamp without re-deriving them.
How:   A dataclass stored in the ASGI scope state, so it is visible to every
       later stage and (through request.state) to route handlers.

Lifecycle:
    Created by BodyParserMiddleware, cleaned in place by
    SanitizationMiddleware, stamped by InstrumentationMiddleware, read by
    handlers via the get_request_context dependency.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, MutableMapping, Optional, Union

from fastapi import Depends
from starlette.requests import HTTPConnection

from gateway.exceptions import InternalError
from gateway.sanitize import sanitize

QueryValue = Union[str, List[str]]

STATE_KEY = "context"


@dataclass
class RequestContext:
    method: str
    path: str
    query_string: str = ""
    client_ip: str = "unknown"
    request_id: str = ""
    raw_body: bytes = b""
    body: Any = None
    query: Dict[str, QueryValue] = field(default_factory=dict)
    params: Dict[str, Any] = field(default_factory=dict)
    requested_time: Optional[str] = None
    sanitized: bool = False

    @property
    def original_url(self) -> str:
        """Path plus query string, as the client sent it."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path


def attach_context(scope: MutableMapping[str, Any], context: RequestContext) -> None:
    scope.setdefault("state", {})[STATE_KEY] = context


def context_from_scope(scope: MutableMapping[str, Any]) -> Optional[RequestContext]:
    return scope.get("state", {}).get(STATE_KEY)


def sanitize_params(request: HTTPConnection) -> Dict[str, Any]:
    """
    FastAPI dependency cleaning the path params of the matched route.

    Path params only exist once the router has matched, after every
    pipeline stage has run, so they get the same operator strip and markup
    neutralization here. The cleaned mapping is written back to
    scope["path_params"]: FastAPI solves dependencies before it reads path
    arguments, so the handler's own path args receive the cleaned values.

    create_app() attaches this to every resource router.
    """
    settings = request.app.state.settings
    params, _ = sanitize(dict(request.path_params), settings.sanitize_replace_with)
    request.scope["path_params"] = params

    context = context_from_scope(request.scope)
    if context is not None:
        context.params = params
    return params


def get_request_context(
    request: HTTPConnection,
    params: Dict[str, Any] = Depends(sanitize_params),
) -> RequestContext:
    """
    FastAPI dependency returning the pipeline context for this request.

    Raises InternalError if the app was assembled without BodyParserMiddleware;
    that is a wiring defect, not something the client did.
    """
    context = context_from_scope(request.scope)
    if context is None:
        raise InternalError(context={"reason": "request context missing from scope"})
    context.params = params
    return context
