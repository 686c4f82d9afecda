"""
Error envelope shared by every endpoint (documentation only; the handlers in
core/errors.py build the JSON directly).
"""
from typing import Any, Optional
from pydantic import BaseModel, Field


class FieldError(BaseModel):
    field: str = Field(description='Dotted location, e.g. "event_type" or "path.user_id".')
    message: str
    type: str


class ErrorResponse(BaseModel):
    """`{code, message, details}`; VALIDATION_ERROR puts a FieldError list under details.errors."""
    code: str = Field(examples=["PROFILE_NOT_FOUND", "INVALID_TRANSITION", "PERSISTENCE_ERROR"])
    message: str
    details: Optional[dict[str, Any]] = None
