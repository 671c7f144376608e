"""In-memory implementation of Storage."""


from memlane.identity.models import IdentityFact
from memlane.memory.models import DEFAULT_REPLICA, MemoryChunk, TokenEntry
from memlane.review.enums import ReviewStatus
from memlane.review.models import ReviewItem
from memlane.storage.errors import ConflictError
from memlane.storage.store import Storage
from memlane.timestamps import utc_now


class InMemoryStorage(Storage):
    """In-memory implementation of Storage for testing and development.

    Uses simple dict storage with linear scan for queries. Records are
    copied on the way in and out so callers never share state with the
    store. Not suitable for production use.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._identities: dict[tuple[str, str], IdentityFact] = {}
        self._chunks: dict[tuple[str, str], MemoryChunk] = {}
        self._token_index: list[TokenEntry] = []
        self._reviews: dict[str, ReviewItem] = {}

    # Identity operations
    async def get_identity(self, user_id: str, key: str) -> IdentityFact | None:
        """Get an identity fact by (user_id, key)."""
        fact = self._identities.get((user_id, key))
        return fact.model_copy(deep=True) if fact else None

    async def set_identity(
        self, fact: IdentityFact, *, expected_version: int | None = None
    ) -> None:
        """Upsert an identity fact, optionally compare-and-swap on version."""
        ident = (fact.user_id, fact.key)
        if expected_version is not None:
            current = self._identities.get(ident)
            stored_version = current.version if current else 0
            if stored_version != expected_version:
                raise ConflictError(
                    f"set identity: version is {stored_version}, "
                    f"expected {expected_version}"
                )
        self._identities[ident] = fact.model_copy(deep=True)

    # Memory operations
    async def store_memory(self, chunk: MemoryChunk) -> None:
        """Insert a chunk."""
        ident = (chunk.user_id, chunk.chunk_id)
        if ident in self._chunks:
            raise ConflictError(f"store memory: duplicate chunk {chunk.chunk_id}")
        self._chunks[ident] = chunk.model_copy(deep=True)

    async def search_memory_by_tokens(
        self,
        user_id: str,
        tokens: list[str],
        *,
        replica_id: str = DEFAULT_REPLICA,
    ) -> list[MemoryChunk]:
        """Get the chunks indexed under any of the tokens."""
        chunk_ids = await self.lookup_tokens(user_id, tokens, replica_id=replica_id)
        results = [
            self._chunks[(user_id, chunk_id)].model_copy(deep=True)
            for chunk_id in chunk_ids
            if (user_id, chunk_id) in self._chunks
        ]
        results.sort(key=lambda c: (c.created_at, c.chunk_id))
        return results

    # Token index operations
    async def index_tokens(self, entries: list[TokenEntry]) -> None:
        """Append inverted-index rows."""
        self._token_index.extend(entry.model_copy() for entry in entries)

    async def lookup_tokens(
        self,
        user_id: str,
        tokens: list[str],
        *,
        replica_id: str = DEFAULT_REPLICA,
    ) -> list[str]:
        """Get the distinct chunk IDs indexed under any of the tokens."""
        if not tokens:
            return []
        wanted = set(tokens)
        chunk_ids = {
            entry.chunk_id
            for entry in self._token_index
            if entry.user_id == user_id
            and entry.replica_id == replica_id
            and entry.token in wanted
        }
        return sorted(chunk_ids)

    # Review queue operations
    async def store_review(self, item: ReviewItem) -> None:
        """Insert a review item."""
        if item.session_id in self._reviews:
            raise ConflictError(f"store review: duplicate session {item.session_id}")
        self._reviews[item.session_id] = item.model_copy(deep=True)

    async def get_review(self, session_id: str) -> ReviewItem | None:
        """Get a review item by session ID."""
        item = self._reviews.get(session_id)
        return item.model_copy(deep=True) if item else None

    async def list_pending_reviews(self, user_id: str) -> list[ReviewItem]:
        """List pending review items for a user, oldest first."""
        results = [
            item.model_copy(deep=True)
            for item in self._reviews.values()
            if item.user_id == user_id and item.status == ReviewStatus.PENDING
        ]
        results.sort(key=lambda x: x.created_at)
        return results

    async def update_review_status(
        self,
        session_id: str,
        status: ReviewStatus,
        *,
        expected_status: ReviewStatus | None = None,
    ) -> bool:
        """Set the status and stamp reviewed_at."""
        item = self._reviews.get(session_id)
        if item is None:
            return False
        if expected_status is not None and item.status != expected_status:
            return False
        item.status = status
        item.reviewed_at = utc_now()
        return True

    # Health and lifecycle
    async def ping(self) -> None:
        """Always reachable."""
        return None

    def backend_name(self) -> str:
        """Backend identifier."""
        return "inmemory"

    async def close(self) -> None:
        """Nothing to release."""
        return None
