"""MongoDB implementation of Storage.

Uses the pymongo asyncio client. Candidates are located with filtered
document queries: the token index collection is queried with $in on the
token, and the chunk collection with $in on the resolved chunk IDs.

Collections (names configurable):
- identity_core: unique (user_id, key)
- memory_chunks: unique (user_id, chunk_id)
- token_index: (user_id, replica_id, token)
- review_queue: unique session_id, (user_id, status, created_at)
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import pydantic
from pymongo import ASCENDING, AsyncMongoClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from memlane.identity.models import IdentityFact
from memlane.memory.models import DEFAULT_REPLICA, MemoryChunk, TokenEntry
from memlane.observability.logging import get_logger
from memlane.observability.metrics import STORAGE_ERRORS
from memlane.review.enums import ReviewStatus
from memlane.review.models import ReviewItem
from memlane.storage.errors import ConflictError, ConnectionError, SerializationError
from memlane.storage.store import Storage
from memlane.timestamps import utc_now

logger = get_logger(__name__)

DEFAULT_DATABASE = "memlane"
_NO_ID = {"_id": False}


class MongoDBStorage(Storage):
    """MongoDB-backed storage.

    The client is created eagerly but connects lazily; connect() verifies
    the server and creates indexes.
    """

    def __init__(
        self,
        url: str,
        *,
        database: str | None = None,
        connect_timeout_ms: int = 10_000,
        server_selection_timeout_ms: int = 10_000,
        identity_collection: str = "identity_core",
        memory_collection: str = "memory_chunks",
        token_collection: str = "token_index",
        review_collection: str = "review_queue",
        client: AsyncMongoClient | None = None,
    ) -> None:
        """Initialize the client and collection handles.

        Args:
            url: MongoDB connection string; its path names the database
            database: Database name overriding the one in the URL
            connect_timeout_ms: Socket connect timeout
            server_selection_timeout_ms: Server selection timeout
            identity_collection: Identity facts collection
            memory_collection: Memory chunks collection
            token_collection: Token index collection
            review_collection: Review queue collection
            client: Pre-built client (tests)
        """
        self._client: AsyncMongoClient = client or AsyncMongoClient(
            url,
            connectTimeoutMS=connect_timeout_ms,
            serverSelectionTimeoutMS=server_selection_timeout_ms,
            tz_aware=True,
        )
        if database:
            self._db = self._client.get_database(database)
        else:
            self._db = self._client.get_default_database(default=DEFAULT_DATABASE)
        self._identities = self._db[identity_collection]
        self._chunks = self._db[memory_collection]
        self._tokens = self._db[token_collection]
        self._reviews = self._db[review_collection]

    @contextmanager
    def _errors(self, operation: str) -> Iterator[None]:
        """Translate driver errors into StoreError subclasses."""
        try:
            yield
        except DuplicateKeyError as e:
            raise ConflictError(f"{operation}: {e}", cause=e) from e
        except PyMongoError as e:
            STORAGE_ERRORS.labels(backend="mongodb", operation=operation).inc()
            logger.error("mongodb_operation_failed", operation=operation, error=str(e))
            raise ConnectionError(f"{operation}: {e}", cause=e) from e
        except pydantic.ValidationError as e:
            raise SerializationError(f"{operation}: {e}", cause=e) from e

    async def connect(self) -> None:
        """Verify connectivity and create indexes."""
        with self._errors("connect"):
            await self._client.admin.command("ping")
            await self._identities.create_index(
                [("user_id", ASCENDING), ("key", ASCENDING)], unique=True
            )
            await self._chunks.create_index(
                [("user_id", ASCENDING), ("chunk_id", ASCENDING)], unique=True
            )
            await self._chunks.create_index(
                [("user_id", ASCENDING), ("replica_id", ASCENDING), ("created_at", ASCENDING)]
            )
            await self._tokens.create_index(
                [("user_id", ASCENDING), ("replica_id", ASCENDING), ("token", ASCENDING)]
            )
            await self._reviews.create_index([("session_id", ASCENDING)], unique=True)
            await self._reviews.create_index(
                [("user_id", ASCENDING), ("status", ASCENDING), ("created_at", ASCENDING)]
            )
        logger.info("mongodb_connected", database=self._db.name)

    # Identity operations
    async def get_identity(self, user_id: str, key: str) -> IdentityFact | None:
        """Get an identity fact by (user_id, key)."""
        with self._errors("get identity"):
            doc = await self._identities.find_one(
                {"user_id": user_id, "key": key}, _NO_ID
            )
            return IdentityFact.model_validate(doc) if doc else None

    async def set_identity(
        self, fact: IdentityFact, *, expected_version: int | None = None
    ) -> None:
        """Upsert an identity fact, optionally compare-and-swap on version."""
        doc = fact.model_dump(mode="python")
        ident = {"user_id": fact.user_id, "key": fact.key}

        with self._errors("set identity"):
            if expected_version is None:
                await self._identities.update_one(ident, {"$set": doc}, upsert=True)
                return

            if expected_version == 0:
                # Unique (user_id, key) index turns a lost race into DuplicateKeyError
                await self._identities.insert_one(doc)
                return

            result = await self._identities.update_one(
                {**ident, "version": expected_version}, {"$set": doc}
            )
            if result.matched_count == 0:
                raise ConflictError(
                    f"set identity: version is not {expected_version}"
                )

    # Memory operations
    async def store_memory(self, chunk: MemoryChunk) -> None:
        """Insert a chunk."""
        with self._errors("store memory"):
            await self._chunks.insert_one(chunk.model_dump(mode="python"))

    async def search_memory_by_tokens(
        self,
        user_id: str,
        tokens: list[str],
        *,
        replica_id: str = DEFAULT_REPLICA,
    ) -> list[MemoryChunk]:
        """Get the chunks indexed under any of the tokens."""
        chunk_ids = await self.lookup_tokens(user_id, tokens, replica_id=replica_id)
        if not chunk_ids:
            return []

        with self._errors("search memory"):
            cursor = self._chunks.find(
                {
                    "user_id": user_id,
                    "replica_id": replica_id,
                    "chunk_id": {"$in": chunk_ids},
                },
                _NO_ID,
            ).sort([("created_at", ASCENDING), ("chunk_id", ASCENDING)])
            docs = await cursor.to_list(length=None)
            return [MemoryChunk.model_validate(doc) for doc in docs]

    # Token index operations
    async def index_tokens(self, entries: list[TokenEntry]) -> None:
        """Append inverted-index rows."""
        if not entries:
            return
        with self._errors("index tokens"):
            await self._tokens.insert_many(
                [entry.model_dump(mode="python") for entry in entries],
                ordered=True,
            )

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
        with self._errors("lookup tokens"):
            chunk_ids = await self._tokens.distinct(
                "chunk_id",
                {
                    "user_id": user_id,
                    "replica_id": replica_id,
                    "token": {"$in": list(tokens)},
                },
            )
        return sorted(chunk_ids)

    # Review queue operations
    async def store_review(self, item: ReviewItem) -> None:
        """Insert a review item."""
        with self._errors("store review"):
            await self._reviews.insert_one(self._review_to_document(item))

    async def get_review(self, session_id: str) -> ReviewItem | None:
        """Get a review item by session ID."""
        with self._errors("get review"):
            doc = await self._reviews.find_one({"session_id": session_id}, _NO_ID)
            return ReviewItem.model_validate(doc) if doc else None

    async def list_pending_reviews(self, user_id: str) -> list[ReviewItem]:
        """List pending review items for a user, oldest first."""
        with self._errors("list pending reviews"):
            cursor = self._reviews.find(
                {"user_id": user_id, "status": ReviewStatus.PENDING.value},
                _NO_ID,
            ).sort([("created_at", ASCENDING)])
            docs = await cursor.to_list(length=None)
            return [ReviewItem.model_validate(doc) for doc in docs]

    async def update_review_status(
        self,
        session_id: str,
        status: ReviewStatus,
        *,
        expected_status: ReviewStatus | None = None,
    ) -> bool:
        """Set the status and stamp reviewed_at."""
        query: dict[str, Any] = {"session_id": session_id}
        if expected_status is not None:
            query["status"] = expected_status.value

        with self._errors("update review status"):
            result = await self._reviews.update_one(
                query,
                {"$set": {"status": status.value, "reviewed_at": utc_now()}},
            )
        return result.matched_count > 0

    @staticmethod
    def _review_to_document(item: ReviewItem) -> dict[str, Any]:
        doc = item.model_dump(mode="python")
        doc["status"] = item.status.value
        return doc

    # Health and lifecycle
    async def ping(self) -> None:
        """Run the server ping command."""
        with self._errors("ping"):
            await self._client.admin.command("ping")

    def backend_name(self) -> str:
        """Backend identifier."""
        return "mongodb"

    async def close(self) -> None:
        """Close the client."""
        await self._client.close()
        logger.info("mongodb_closed")
