"""Middleware stamping permissive CORS headers on every response."""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

METHODS = "PUT, GET, OPTIONS, DELETE, POST, CONNECT, PATCH"
HEADERS = "content-type, authorization"
MAX_AGE = "3600"


def request_origin(request: Request) -> str:
    """The ``Origin`` header without trailing slashes, empty when it is not a printable value."""

    origin = request.headers.get("origin", "").rstrip("/")
    if not origin.isascii() or not origin.isprintable():
        return ""
    return origin


def cors_headers(origin: str) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": METHODS,
        "Access-Control-Allow-Headers": HEADERS,
        "Access-Control-Max-Age": MAX_AGE,
    }


class CorsMiddleware(BaseHTTPMiddleware):
    """Answers preflight ``OPTIONS`` requests directly and decorates all other responses."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        origin = request_origin(request)
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            response = await call_next(request)
        response.headers.update(cors_headers(origin))
        return response
