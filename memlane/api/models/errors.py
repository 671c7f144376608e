"""Error response models for consistent API error handling."""

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Machine-readable error codes returned in failure bodies."""

    INVALID_REQUEST = "INVALID_REQUEST"
    """Body is not JSON, has wrong types, or misses required fields."""

    REVIEW_NOT_FOUND = "REVIEW_NOT_FOUND"
    """No review item exists for the session ID."""

    IMMUTABLE_FACT = "IMMUTABLE_FACT"
    """The identity fact is immutable."""

    CONFLICT = "CONFLICT"
    """A concurrent write won, or the record already exists."""

    INVALID_TRANSITION = "INVALID_TRANSITION"
    """The review status change is not allowed."""

    STORAGE_ERROR = "STORAGE_ERROR"
    """The storage backend failed."""

    TIMEOUT = "TIMEOUT"
    """The request deadline expired."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred."""


class ErrorResponse(BaseModel):
    """Failure body shared by every endpoint.

    Example:
        {"success": false, "error": "user_id and key are required",
         "code": "INVALID_REQUEST"}
    """

    success: bool = False
    error: str
    code: ErrorCode
