"""
wa_bridge.observability.middleware

HTTP middleware for request-scoped logging context.

Responsibilities:
- Reuse the caller's `x-request-id` or mint one, and echo it back.
- Bind request metadata into structlog contextvars.
- Log one line per request with status and latency.
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from wa_bridge.observability.logging import get_logger

log = get_logger(__name__)

REQUEST_ID_HEADER = "x-request-id"

# Polled by the supervisor every few seconds; logged at debug only.
QUIET_PATHS = frozenset({"/healthz", "/readyz"})


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
        )
        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            emit = log.debug if request.url.path in QUIET_PATHS else log.info
            emit("http.request", status_code=response.status_code, duration_ms=elapsed_ms)
        finally:
            # Same task may serve the next request.
            structlog.contextvars.clear_contextvars()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


# --- Module Notes -----------------------------------------------------------
# Storage code logs through the same structlog pipeline, so any line emitted
# while a request is in flight carries its request id.
