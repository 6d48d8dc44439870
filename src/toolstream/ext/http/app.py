"""Starlette app exposing the comments agent over HTTP.

Endpoints:
    POST    /api/comments/chat    → SSE stream (``connected``, ``chunk``*, ``done``|``error``)
    OPTIONS /api/comments/chat    → 200, empty body (preflight)
    GET     /api/comments/health  → ``{"status": "healthy", "agent": ..., "timestamp": ...}``
    GET     /                     → usage document

Example:
    >>> from toolstream.ext.http import create_app
    >>> app = create_app()             # uses the process-wide agent
    >>> # uvicorn --factory toolstream.ext.http:create_app
"""

from __future__ import annotations

from datetime import UTC, datetime

from starlette.applications import Starlette
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse
from starlette.routing import Route

from toolstream.foundation.config import ToolstreamSettings, get_settings
from toolstream.foundation.errors import InternalError
from toolstream.io.streaming import CONTENT_TYPE, SSE_HEADERS
from toolstream.runtime.agent import Agent, get_agent
from toolstream.runtime.observability import get_logger
from toolstream.runtime.session import INTERNAL_ERROR_MESSAGE, RequestSession

log = get_logger("toolstream.http")

CHAT_PATH = "/api/comments/chat"
HEALTH_PATH = "/api/comments/health"
REQUEST_ID_HEADER = "X-Request-ID"

USAGE = {
    "message": "Comments Agent API",
    "endpoints": {
        f"POST {CHAT_PATH}": "Chat with the comments agent (streams responses via SSE)",
        f"GET {HEALTH_PATH}": "Health check for the comments agent",
        "GET /": "This help message",
    },
    "example": {
        "method": "POST",
        "url": CHAT_PATH,
        "body": {"messages": [{"role": "user", "content": "Show me comments from post 1"}]},
    },
}


class EmptyPreflightCORSMiddleware(CORSMiddleware):
    """CORSMiddleware whose accepted preflights carry no body."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {k: v for k, v in response.headers.items() if k not in ("content-length", "content-type")}
        return Response(status_code=200, headers=headers)


def create_app(agent: Agent | None = None, settings: ToolstreamSettings | None = None) -> Starlette:
    """Create the ASGI app without running it.

    Args:
        agent: Agent to serve (default: the process-wide agent, built on first request)
        settings: Configuration for CORS and debug mode (default: ``get_settings()``)
    """
    settings = settings or get_settings()

    def current_agent() -> Agent:
        return agent if agent is not None else get_agent()

    async def chat(request: Request) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200)
        try:
            body = await request.body()
            session = RequestSession(current_agent(), request_id=request.headers.get(REQUEST_ID_HEADER))
            result = session.receive(body)
        except Exception as e:
            log.exception("request failed before streaming", path=request.url.path)
            error = InternalError.from_exception(e)
            return JSONResponse(
                {"error": INTERNAL_ERROR_MESSAGE, "message": error.message}, status_code=error.status_code,
            )
        if result.is_err():
            invalid = result.unwrap_err()
            return JSONResponse({"error": invalid.message}, status_code=invalid.status_code)
        return StreamingResponse(
            session.stream(),
            media_type=CONTENT_TYPE,
            headers={**SSE_HEADERS, REQUEST_ID_HEADER: session.request_id},
        )

    async def health(request: Request) -> JSONResponse:
        return JSONResponse({
            "status": "healthy",
            "agent": current_agent().name,
            "timestamp": datetime.now(UTC).isoformat(),
        })

    async def index(request: Request) -> JSONResponse:
        return JSONResponse(USAGE)

    async def method_not_allowed(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse({"error": "Method not allowed"}, status_code=405, headers=exc.headers)

    routes = [
        Route(CHAT_PATH, chat, methods=["POST", "OPTIONS"]),
        Route(HEALTH_PATH, health, methods=["GET"]),
        Route("/", index, methods=["GET"]),
    ]
    middleware = [
        Middleware(
            EmptyPreflightCORSMiddleware,
            allow_origins=settings.server.cors_origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "Cache-Control", REQUEST_ID_HEADER],
            expose_headers=[REQUEST_ID_HEADER],
        ),
    ]
    return Starlette(
        debug=settings.debug,
        routes=routes,
        middleware=middleware,
        exception_handlers={405: method_not_allowed},
    )
