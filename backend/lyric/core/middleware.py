"""
HTTP middleware stack.

Executed in this order for every request:
1. RequestIDMiddleware - assigns X-Request-ID
2. RealIPMiddleware    - resolves the client address behind proxies
3. RequestLoggerMiddleware - one access log line per request
4. RecoveryMiddleware  - turns unhandled exceptions into the 500 envelope
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from .errors import INTERNAL_ERROR_MESSAGE

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("lyric.access")

REQUEST_ID_HEADER = "X-Request-ID"


def get_request_id(request: Request) -> str:
    """Request id assigned by RequestIDMiddleware (empty outside a request)."""
    return getattr(request.state, "request_id", "")


def get_client_ip(request: Request) -> str:
    """Client IP resolved by RealIPMiddleware, falling back to the peer address."""
    ip = getattr(request.state, "client_ip", "")
    if ip:
        return ip
    return request.client.host if request.client else ""


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse an inbound X-Request-ID or generate one, and echo it on the response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER, "").strip() or uuid.uuid4().hex
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RealIPMiddleware(BaseHTTPMiddleware):
    """Resolve the client address from X-Forwarded-For / X-Real-IP."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        forwarded = request.headers.get("X-Forwarded-For", "")
        ip = forwarded.split(",")[0].strip() if forwarded else ""
        if not ip:
            ip = request.headers.get("X-Real-IP", "").strip()
        if not ip and request.client:
            ip = request.client.host
        request.state.client_ip = ip
        return await call_next(request)


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """Emit one access line per request with status and latency."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        access_logger.info(
            '"%s %s" %d %.1fms request_id=%s ip=%s',
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            get_request_id(request),
            get_client_ip(request),
        )
        return response


class RecoveryMiddleware(BaseHTTPMiddleware):
    """Catch anything the handlers did not and answer with the generic 500 envelope."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception:
            logger.exception(
                "panic recovered on %s %s request_id=%s",
                request.method,
                request.url.path,
                get_request_id(request),
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"errors": {"message": INTERNAL_ERROR_MESSAGE}},
            )


def install_middleware(app: FastAPI) -> None:
    """
    Register the middleware stack.

    Starlette runs the most recently added middleware first, so they are added
    innermost first.
    """
    app.add_middleware(RecoveryMiddleware)
    app.add_middleware(RequestLoggerMiddleware)
    app.add_middleware(RealIPMiddleware)
    app.add_middleware(RequestIDMiddleware)
