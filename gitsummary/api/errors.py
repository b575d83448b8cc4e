"""Map service exceptions and request validation failures to JSON errors.

Body shape: ``{"detail": str, "field": str}``, with ``field`` present only
when a single offending input can be named.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gitsummary.services import (
    ExternalServiceError,
    NotFoundError,
    ReportSerializationError,
    ServiceError,
    ValidationError,
)

# Checked in order; subclasses (RateLimitSignal etc.) resolve through isinstance.
_STATUS_BY_ERROR: tuple[tuple[type[ServiceError], int], ...] = (
    (NotFoundError, 404),
    (ValidationError, 422),
    (ExternalServiceError, 502),
    (ReportSerializationError, 500),
)

_LOCATION_PARTS = frozenset({"body", "query", "path", "header"})


def status_for(exc: ServiceError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status
    return 500


def _error_body(detail: str, field: str | None) -> dict[str, str]:
    body = {"detail": detail}
    if field:
        body["field"] = field
    return body


async def _service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(exc),
        content=_error_body(str(exc), getattr(exc, "field", None)),
    )


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    detail = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in errors
    )
    field = _error_field(errors[0]) if errors else None
    return JSONResponse(status_code=422, content=_error_body(detail, field))


def _error_field(err: dict) -> str | None:
    """Innermost named location of a pydantic error, skipping list indexes."""
    for part in reversed(err.get("loc", ())):
        if isinstance(part, str) and part not in _LOCATION_PARTS:
            return part
    return None


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, _validation_error_handler  # type: ignore[arg-type]
    )
