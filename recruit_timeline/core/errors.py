"""
Custom exception hierarchy for the recruiting timeline engine.

Rule: every error has a machine-readable `code` string so callers (and the
HTTP host) can branch on it without parsing English messages.
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

class TimelineException(Exception):
    """Base class for all engine-level errors."""
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


class ProfileNotFoundError(TimelineException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "PROFILE_NOT_FOUND"

    def __init__(self, user_id: int):
        super().__init__(
            message=f"No athlete profile found for user {user_id}.",
            details={"user_id": user_id},
        )


class PersistenceError(TimelineException):
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "PERSISTENCE_ERROR"

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(
            message=message,
            details={"operation": operation} if operation else {},
        )


class InvalidTaskDefinitionError(TimelineException):
    code = "INVALID_TASK_DEFINITION"

    def __init__(self, task_key: str, reason: str):
        self.task_key = task_key
        super().__init__(
            message=f"Task definition {task_key!r} has a malformed trigger config: {reason}",
            details={"task_key": task_key, "reason": reason},
        )


class TaskInstanceNotFoundError(TimelineException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "TASK_INSTANCE_NOT_FOUND"

    def __init__(self, instance_id: int):
        super().__init__(
            message=f"Task instance {instance_id} does not exist.",
            details={"instance_id": instance_id},
        )


class InvalidTransitionError(TimelineException):
    http_status = status.HTTP_409_CONFLICT
    code = "INVALID_TRANSITION"

    def __init__(self, instance_id: int, current: str, requested: str):
        super().__init__(
            message=f"Task instance {instance_id} cannot move from {current} to {requested}.",
            details={"instance_id": instance_id, "from": current, "to": requested},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def timeline_exception_handler(request: Request, exc: TimelineException) -> JSONResponse:
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
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
