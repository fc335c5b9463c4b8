"""
Custom exception hierarchy for calmtrack.

Rule: every error has a machine-readable `code` string so the dashboard
can branch on it without parsing English messages. The same classes are
raised by the store and rendered by the API handlers below.
"""
from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class CalmTrackException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class StorageUnavailable(CalmTrackException):
    """The local database cannot be opened, migrated or is already closed."""
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "STORAGE_UNAVAILABLE"

    def __init__(self, message: str, error: str | None = None):
        super().__init__(
            message=message,
            details={"error": error} if error else {},
        )


class InvalidRecord(CalmTrackException):
    """A record failed validation before reaching the database."""
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_RECORD"

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(
            message=message,
            details={"errors": errors} if errors else {},
        )


class EngineRejected(CalmTrackException):
    """The database refused an otherwise well-formed operation."""
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "ENGINE_REJECTED"

    def __init__(self, operation: str, error: str):
        super().__init__(
            message=f"Storage engine rejected {operation}.",
            details={"operation": operation, "error": error},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def calmtrack_exception_handler(request: Request, exc: CalmTrackException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
