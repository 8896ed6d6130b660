"""Mapping of domain and service failures to HTTP responses."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from checkin_tracker.domain.errors import (
    AuthenticationError,
    CheckinError,
    ConflictError,
    DuplicateError,
    StateError,
    ValidationError,
)

if TYPE_CHECKING:
    from checkin_tracker.containers import AppContainer

_ERROR_STATUS: dict[type[CheckinError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_CONTENT,
    ConflictError: status.HTTP_409_CONFLICT,
    DuplicateError: status.HTTP_409_CONFLICT,
    StateError: status.HTTP_409_CONFLICT,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
}


def status_for(exc: CheckinError) -> int:
    """Return the HTTP status for a domain error."""
    for error_type, code in _ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


async def checkin_error_handler(_request: Request, exc: CheckinError) -> JSONResponse:
    """Render domain errors as a JSON detail message."""
    return JSONResponse(status_code=status_for(exc), content={"detail": exc.message})


def service_failure(
    container: AppContainer, exc: Exception, fallback: str
) -> HTTPException:
    """Return a retryable 503 with local debug info."""
    detail = fallback
    if container.settings.environment == "local":
        debug = f"{type(exc).__name__}: {exc}".strip()
        if debug:
            detail = f"{fallback} (debug: {debug})"
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
