"""Per-request correlation id and access log."""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

log = structlog.get_logger("gitsummary.api")

REQUEST_ID_HEADER = "X-Request-ID"


def _request_id(request: Request) -> str:
    """Reuse the caller's id when it is a UUID (the extraction service sends its own)."""
    raw = request.headers.get(REQUEST_ID_HEADER, "")
    try:
        return str(uuid.UUID(raw))
    except ValueError:
        return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Bind request_id, method and path for every log line emitted while serving."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _request_id(request)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        started = time.perf_counter()

        def elapsed_ms() -> float:
            return round((time.perf_counter() - started) * 1000, 1)

        try:
            response = await call_next(request)
            log.info(
                "request.completed", status_code=response.status_code, duration_ms=elapsed_ms()
            )
        except Exception:
            log.exception("request.failed", duration_ms=elapsed_ms())
            raise
        finally:
            structlog.contextvars.unbind_contextvars("request_id", "method", "path")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
