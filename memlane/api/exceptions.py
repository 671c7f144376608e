"""Mapping from service and storage errors to HTTP responses.

Services raise domain errors (memlane.errors) and backends raise
StoreError subclasses; neither knows about HTTP. The global exception
handlers use error_status() to pick the status code and error code.
"""

from memlane.api.models.errors import ErrorCode
from memlane.errors import (
    ImmutableFactError,
    IndexingError,
    MemlaneError,
    ReviewNotFoundError,
    ReviewTransitionError,
    ValidationError,
    VersionConflictError,
)
from memlane.storage.errors import ConflictError, StoreError

STORAGE_ERROR_MESSAGE = "storage backend error"

# First match wins, so subclasses go before their bases
_STATUS_TABLE: tuple[tuple[type[Exception], int, ErrorCode], ...] = (
    (ValidationError, 400, ErrorCode.INVALID_REQUEST),
    (ReviewNotFoundError, 404, ErrorCode.REVIEW_NOT_FOUND),
    (ImmutableFactError, 409, ErrorCode.IMMUTABLE_FACT),
    (VersionConflictError, 409, ErrorCode.CONFLICT),
    (ReviewTransitionError, 409, ErrorCode.INVALID_TRANSITION),
    (ConflictError, 409, ErrorCode.CONFLICT),
    (IndexingError, 500, ErrorCode.STORAGE_ERROR),
    (StoreError, 500, ErrorCode.STORAGE_ERROR),
    (TimeoutError, 504, ErrorCode.TIMEOUT),
)


def error_status(exc: Exception) -> tuple[int, ErrorCode]:
    """Return (HTTP status, error code) for an exception."""
    for error_type, status_code, error_code in _STATUS_TABLE:
        if isinstance(exc, error_type):
            return status_code, error_code
    return 500, ErrorCode.INTERNAL_ERROR


def public_message(exc: Exception) -> str:
    """Message safe to return to the client.

    Backend failures are reported opaquely; domain errors carry their own
    message.
    """
    status_code, error_code = error_status(exc)
    if error_code == ErrorCode.STORAGE_ERROR:
        return STORAGE_ERROR_MESSAGE
    if error_code == ErrorCode.TIMEOUT:
        return "request timed out"
    if error_code == ErrorCode.CONFLICT and isinstance(exc, ConflictError):
        return "conflicting write"
    if isinstance(exc, MemlaneError):
        return exc.message
    if status_code >= 500:
        return "An unexpected error occurred"
    return str(exc)
