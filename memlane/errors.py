"""Domain error hierarchy.

Services raise these errors; the API layer maps each one to an HTTP
status. Backend failures are raised separately as StoreError subclasses
(see memlane.storage.errors).
"""


class MemlaneError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MemlaneError):
    """Raised when a required field is missing or empty.

    Always raised before any storage I/O takes place.
    """

    pass


class ImmutableFactError(MemlaneError):
    """Raised when setting an identity fact that is tagged immutable."""

    def __init__(self, user_id: str, key: str) -> None:
        super().__init__(f"identity key {key!r} is immutable and cannot be updated")
        self.user_id = user_id
        self.key = key


class VersionConflictError(MemlaneError):
    """Raised when concurrent writers keep winning the version race."""

    def __init__(self, user_id: str, key: str, attempts: int) -> None:
        super().__init__(
            f"identity key {key!r} changed concurrently ({attempts} attempts)"
        )
        self.user_id = user_id
        self.key = key
        self.attempts = attempts


class ReviewNotFoundError(MemlaneError):
    """Raised when a review item does not exist for a session ID."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"review {session_id!r} not found")
        self.session_id = session_id


class ReviewTransitionError(MemlaneError):
    """Raised on a review status change the state machine does not allow."""

    def __init__(self, session_id: str, current: str, requested: str) -> None:
        super().__init__(
            f"review {session_id!r} cannot move from {current} to {requested}"
        )
        self.session_id = session_id
        self.current = current
        self.requested = requested


class IndexingError(MemlaneError):
    """Raised when a chunk was stored but its tokens could not be indexed.

    The chunk is durable but unsearchable; nothing is rolled back.
    """

    def __init__(self, chunk_id: str, cause: Exception) -> None:
        super().__init__(f"index tokens for chunk {chunk_id!r}: {cause}")
        self.chunk_id = chunk_id
        self.cause = cause
