"""Store error hierarchy for storage backends.

All backends must raise these errors for consistent error handling.
Absent records are never errors: lookups return None or an empty list.
"""


class StoreError(Exception):
    """Base exception for all store errors.

    Backends wrap driver-specific errors in one of the StoreError
    subclasses. The message starts with the operation name.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConnectionError(StoreError):
    """Raised when the backend cannot be reached or an I/O call fails.

    Examples:
        - Server selection timeout
        - Network errors
        - Throttled or rejected requests
    """

    pass


class ConflictError(StoreError):
    """Raised on a uniqueness or conditional-write violation.

    Examples:
        - Duplicate (user_id, chunk_id)
        - Duplicate review session_id
        - Identity version compare-and-swap mismatch
    """

    pass


class SerializationError(StoreError):
    """Raised when a stored record cannot be decoded into a model."""

    pass
