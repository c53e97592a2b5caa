"""
Custom exception hierarchy for the Skyforge API.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

The diagnostics engine itself never raises: insufficient data is reported
as None / 0 / a low-confidence default. These errors belong to the
persistence and HTTP layers only.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class SkyforgeException(Exception):
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


class ReviewNotFoundError(SkyforgeException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "REVIEW_NOT_FOUND"

    def __init__(self, project_id: str, review_id: str):
        super().__init__(
            message=f"Weekly review {review_id} not found for project {project_id}.",
            details={"project_id": project_id, "review_id": review_id},
        )


class DirectiveNotFoundError(SkyforgeException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "DIRECTIVE_NOT_FOUND"

    def __init__(self):
        super().__init__(
            message="No task-like line could be extracted from the advisor response.",
        )


class CorruptCollectionError(SkyforgeException):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "CORRUPT_COLLECTION"

    def __init__(self, key: str, reason: str):
        super().__init__(
            message=f"Stored collection '{key}' could not be decoded.",
            details={"key": key, "reason": reason},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def skyforge_exception_handler(request: Request, exc: SkyforgeException) -> JSONResponse:
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
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
