"""
Gateway — Global Error Handler (error boundary)
================================================

What:  The single place where a failure from any later stage or handler
       becomes a response.
Why:   Stages and handlers only raise; none of them formats error bodies.
       That keeps the environment-dependent rules (what a client may see)
       in one module: gateway.errors.
How:   Pure ASGI middleware wrapping the rest of the pipeline. Exceptions
       raised below it are normalized and rendered via render_error().
       It never calls further into the pipeline after a failure.

Edge cases:
    ClientDisconnect: the client went away mid-request. Nothing is written
        (there is nobody to write to); an INFO line is logged.
    Response already started: headers are on the wire, so a second
        response would be a protocol violation. The error is logged and
        re-raised so the server drops the connection.
"""

import logging

from starlette.requests import ClientDisconnect
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from gateway.config import Settings
from gateway.errors import render_error
from gateway.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class GlobalErrorHandlerMiddleware:
    def __init__(self, app: ASGIApp, settings: Settings):
        self.app = app
        self.settings = settings

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except ClientDisconnect:
            logger.info(
                "[%s] Client disconnected from %s before a response was sent",
                request_id_var.get(""),
                scope.get("path"),
            )
        except Exception as exc:
            if response_started:
                logger.error(
                    "[%s] Error after response started on %s; aborting connection",
                    request_id_var.get(""),
                    scope.get("path"),
                    exc_info=True,
                )
                raise
            response = render_error(exc, self.settings, request_id_var.get(""))
            await response(scope, receive, send)
