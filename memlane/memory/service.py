"""Memory ingestion and keyword search."""

import time

from memlane.errors import IndexingError, ValidationError
from memlane.index.scoring import DEFAULT_TOP_K, rank_chunks
from memlane.index.tokenizer import tokenize
from memlane.memory.models import (
    DEFAULT_REPLICA,
    MemoryChunk,
    ScoredChunk,
    TokenEntry,
    utc_now,
)
from memlane.observability.logging import get_logger
from memlane.observability.metrics import (
    MEMORY_CHUNKS_STORED,
    MEMORY_INDEX_FAILURES,
    SEARCH_CANDIDATES,
)
from memlane.observability.tracing import create_span
from memlane.storage.errors import StoreError
from memlane.storage.store import Storage

logger = get_logger(__name__)


class ChunkIdGenerator:
    """Generates chunk IDs of the form {user_id}-{nanoseconds}.

    The timestamp never repeats within one generator: when the clock has
    not advanced since the last ID, the previous value plus one is used.
    """

    def __init__(self) -> None:
        self._last_ns = 0

    def next_id(self, user_id: str) -> str:
        now = time.time_ns()
        if now <= self._last_ns:
            now = self._last_ns + 1
        self._last_ns = now
        return f"{user_id}-{now}"


class MemoryService:
    """Stores memory chunks and answers relevance queries.

    store() is two steps: the chunk is written, then one token-index row
    per distinct token. The steps are not atomic. If indexing fails the
    chunk stays stored but cannot be found by search, and IndexingError
    is raised; nothing is rolled back.

    search() tokenizes the query, resolves candidates through the token
    index, then scores and ranks them.
    """

    def __init__(
        self,
        storage: Storage,
        id_generator: ChunkIdGenerator | None = None,
    ) -> None:
        self._storage = storage
        self._ids = id_generator or ChunkIdGenerator()

    async def store(
        self,
        user_id: str,
        content: str,
        *,
        importance: float = 0.0,
        source: str = "",
        session_id: str = "",
        replica_id: str = DEFAULT_REPLICA,
    ) -> MemoryChunk:
        """Store a chunk and index its tokens.

        Raises:
            ValidationError: user_id or content is empty
            StoreError: the chunk could not be written
            IndexingError: the chunk was written but not indexed
        """
        if not user_id or not content:
            raise ValidationError("user_id and content are required")

        now = utc_now()
        chunk = MemoryChunk(
            user_id=user_id,
            chunk_id=self._ids.next_id(user_id),
            replica_id=replica_id,
            content=content,
            tokens=tokenize(content),
            importance=importance,
            source=source,
            session_id=session_id,
            created_at=now,
        )

        with create_span("memory.store", attributes={"memlane.user_id": user_id}):
            await self._storage.store_memory(chunk)

            entries = [
                TokenEntry(
                    token=token,
                    user_id=user_id,
                    replica_id=replica_id,
                    chunk_id=chunk.chunk_id,
                    timestamp=now,
                )
                for token in chunk.tokens
            ]
            try:
                await self._storage.index_tokens(entries)
            except StoreError as e:
                MEMORY_INDEX_FAILURES.inc()
                logger.error(
                    "memory_index_failed",
                    user_id=user_id,
                    chunk_id=chunk.chunk_id,
                    error=str(e),
                )
                raise IndexingError(chunk.chunk_id, e) from e

        MEMORY_CHUNKS_STORED.labels(source=source or "unknown").inc()
        logger.info(
            "memory_stored",
            user_id=user_id,
            chunk_id=chunk.chunk_id,
            token_count=len(chunk.tokens),
        )
        return chunk

    async def search(
        self,
        user_id: str,
        query: str,
        top_k: int = DEFAULT_TOP_K,
        *,
        replica_id: str = DEFAULT_REPLICA,
    ) -> list[ScoredChunk]:
        """Return the top_k chunks most relevant to the query.

        A query with no usable tokens returns an empty list.

        Raises:
            ValidationError: user_id or query is empty
        """
        if not user_id or not query:
            raise ValidationError("user_id and query are required")

        query_tokens = tokenize(query)
        if not query_tokens:
            return []

        with create_span("memory.search", attributes={"memlane.user_id": user_id}):
            candidates = await self._storage.search_memory_by_tokens(
                user_id, query_tokens, replica_id=replica_id
            )

        SEARCH_CANDIDATES.observe(len(candidates))
        results = rank_chunks(query_tokens, candidates, top_k)

        logger.debug(
            "memory_searched",
            user_id=user_id,
            query_tokens=len(query_tokens),
            candidates=len(candidates),
            returned=len(results),
        )
        return results
