"""Storage abstract interface.

Every backend must be externally indistinguishable from the others:

- absent records come back as None (or an empty list), never as errors;
- lookup_tokens returns distinct chunk IDs sorted ascending;
- search_memory_by_tokens resolves candidates through the token index,
  returns each chunk once, ordered by (created_at, chunk_id);
- list_pending_reviews is ordered by created_at;
- failures are raised as StoreError subclasses carrying the operation name.
"""

from abc import ABC, abstractmethod

from memlane.identity.models import IdentityFact
from memlane.memory.models import DEFAULT_REPLICA, MemoryChunk, TokenEntry
from memlane.review.enums import ReviewStatus
from memlane.review.models import ReviewItem


class Storage(ABC):
    """Abstract interface for all persistence operations.

    Stores identity facts, memory chunks, the inverted token index and the
    review queue. Policy (versioning, immutability, review transitions)
    lives in the services; a backend persists what it is given.
    """

    # Identity operations
    @abstractmethod
    async def get_identity(self, user_id: str, key: str) -> IdentityFact | None:
        """Get an identity fact by (user_id, key)."""
        pass

    @abstractmethod
    async def set_identity(
        self, fact: IdentityFact, *, expected_version: int | None = None
    ) -> None:
        """Upsert an identity fact by (user_id, key).

        With expected_version=None the write is unconditional. Otherwise the
        write only succeeds if the stored version equals expected_version
        (0 meaning "no stored fact"), and ConflictError is raised if not.
        """
        pass

    # Memory operations
    @abstractmethod
    async def store_memory(self, chunk: MemoryChunk) -> None:
        """Insert a chunk; ConflictError if (user_id, chunk_id) exists."""
        pass

    @abstractmethod
    async def search_memory_by_tokens(
        self,
        user_id: str,
        tokens: list[str],
        *,
        replica_id: str = DEFAULT_REPLICA,
    ) -> list[MemoryChunk]:
        """Get the chunks indexed under any of the tokens."""
        pass

    # Token index operations
    @abstractmethod
    async def index_tokens(self, entries: list[TokenEntry]) -> None:
        """Append inverted-index rows.

        A failure is a hard error; rows written before it are not removed.
        """
        pass

    @abstractmethod
    async def lookup_tokens(
        self,
        user_id: str,
        tokens: list[str],
        *,
        replica_id: str = DEFAULT_REPLICA,
    ) -> list[str]:
        """Get the distinct chunk IDs indexed under any of the tokens."""
        pass

    # Review queue operations
    @abstractmethod
    async def store_review(self, item: ReviewItem) -> None:
        """Insert a review item; ConflictError if session_id exists."""
        pass

    @abstractmethod
    async def get_review(self, session_id: str) -> ReviewItem | None:
        """Get a review item by session ID."""
        pass

    @abstractmethod
    async def list_pending_reviews(self, user_id: str) -> list[ReviewItem]:
        """List pending review items for a user, oldest first."""
        pass

    @abstractmethod
    async def update_review_status(
        self,
        session_id: str,
        status: ReviewStatus,
        *,
        expected_status: ReviewStatus | None = None,
    ) -> bool:
        """Set the status and stamp reviewed_at.

        Returns False when no review matches session_id (and
        expected_status, when given).
        """
        pass

    # Health and lifecycle
    async def connect(self) -> None:
        """Prepare the backend (indexes, tables). Default does nothing."""
        return None

    @abstractmethod
    async def ping(self) -> None:
        """Raise ConnectionError if the backend is unreachable."""
        pass

    @abstractmethod
    def backend_name(self) -> str:
        """Short backend identifier reported by /health."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the backend client."""
        pass
