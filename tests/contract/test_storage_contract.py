"""Contract tests for Storage implementations.

These tests define the behaviour ALL Storage backends must share: the
same return shapes, the same not-found semantics and the same duplicate
suppression. Each backend subclasses StorageContract and provides the
`store` fixture; MongoDB and DynamoDB run as integration tests and skip
when their server is unavailable.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta

import pytest

from memlane.identity.models import IdentityFact
from memlane.memory.models import MemoryChunk, TokenEntry
from memlane.review.enums import ReviewStatus
from memlane.review.models import IdentityProposal, MemoryProposal, ReviewItem
from memlane.storage.errors import ConflictError
from memlane.storage.stores.inmemory import InMemoryStorage

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)


def make_chunk(
    chunk_id: str,
    content: str,
    *,
    user_id: str = "u1",
    replica_id: str = "default",
    minutes: int = 0,
    importance: float = 0.5,
) -> MemoryChunk:
    return MemoryChunk(
        user_id=user_id,
        chunk_id=chunk_id,
        replica_id=replica_id,
        content=content,
        tokens=content.split(),
        importance=importance,
        source="conversation",
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


def entries_for(chunk: MemoryChunk) -> list[TokenEntry]:
    return [
        TokenEntry(
            token=token,
            user_id=chunk.user_id,
            replica_id=chunk.replica_id,
            chunk_id=chunk.chunk_id,
            timestamp=chunk.created_at,
        )
        for token in chunk.tokens
    ]


def make_review(session_id: str, *, user_id: str = "u1", minutes: int = 0) -> ReviewItem:
    return ReviewItem(
        session_id=session_id,
        user_id=user_id,
        proposed_identity_updates=[
            IdentityProposal(key="name", value="Ann", confidence=0.8)
        ],
        proposed_memories=[
            MemoryProposal(content="I love hiking", importance=0.5, source="conversation")
        ],
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


class StorageContract(ABC):
    """Contract tests for Storage methods.

    All Storage implementations must pass these tests.
    """

    @abstractmethod
    @pytest.fixture
    def store(self):
        """Return a Storage implementation to test."""
        pass

    async def add_chunk(self, store, chunk: MemoryChunk) -> None:
        await store.store_memory(chunk)
        await store.index_tokens(entries_for(chunk))

    # Identity

    @pytest.mark.asyncio
    async def test_get_absent_identity(self, store):
        """Should return None, not raise, for an unknown fact."""
        assert await store.get_identity("u1", "name") is None

    @pytest.mark.asyncio
    async def test_set_and_get_identity(self, store):
        """Should round-trip an identity fact."""
        fact = IdentityFact(
            user_id="u1",
            key="birthdate",
            value={"day": 1, "month": 5, "note": "approx"},
            version=1,
            immutable=True,
        )
        await store.set_identity(fact)

        stored = await store.get_identity("u1", "birthdate")
        assert stored is not None
        assert stored.value == {"day": 1, "month": 5, "note": "approx"}
        assert stored.version == 1
        assert stored.immutable is True

    @pytest.mark.asyncio
    async def test_identity_value_number_types_kept(self, store):
        """Should return integral floats as floats and ints as ints."""
        await store.set_identity(
            IdentityFact(
                user_id="u1", key="weight", value={"kg": 70.0, "children": 2}, version=1
            )
        )

        stored = await store.get_identity("u1", "weight")
        assert stored.value == {"kg": 70.0, "children": 2}
        assert isinstance(stored.value["kg"], float)
        assert isinstance(stored.value["children"], int)

    @pytest.mark.asyncio
    async def test_set_identity_is_unconditional_upsert(self, store):
        """Should overwrite without checks when no version is expected."""
        await store.set_identity(IdentityFact(user_id="u1", key="k", value="a", version=5))
        await store.set_identity(IdentityFact(user_id="u1", key="k", value="b", version=1))

        stored = await store.get_identity("u1", "k")
        assert stored.value == "b"
        assert stored.version == 1

    @pytest.mark.asyncio
    async def test_identity_compare_and_swap(self, store):
        """Should write only when the stored version matches."""
        await store.set_identity(
            IdentityFact(user_id="u1", key="k", value="a", version=1), expected_version=0
        )
        await store.set_identity(
            IdentityFact(user_id="u1", key="k", value="b", version=2), expected_version=1
        )

        with pytest.raises(ConflictError):
            await store.set_identity(
                IdentityFact(user_id="u1", key="k", value="c", version=2), expected_version=1
            )
        with pytest.raises(ConflictError):
            await store.set_identity(
                IdentityFact(user_id="u1", key="k", value="d", version=1), expected_version=0
            )

        stored = await store.get_identity("u1", "k")
        assert stored.value == "b"
        assert stored.version == 2

    @pytest.mark.asyncio
    async def test_identity_is_user_scoped(self, store):
        """Should keep facts of different users apart."""
        await store.set_identity(IdentityFact(user_id="u1", key="name", value="Ann", version=1))

        assert await store.get_identity("u2", "name") is None

    # Memory and token index

    @pytest.mark.asyncio
    async def test_duplicate_chunk_rejected(self, store):
        """Should refuse a second chunk with the same (user_id, chunk_id)."""
        await store.store_memory(make_chunk("c1", "hiking"))

        with pytest.raises(ConflictError):
            await store.store_memory(make_chunk("c1", "other"))

    @pytest.mark.asyncio
    async def test_same_chunk_id_for_other_user(self, store):
        """Should scope chunk uniqueness to the user."""
        await store.store_memory(make_chunk("c1", "hiking"))
        await store.store_memory(make_chunk("c1", "hiking", user_id="u2"))

    @pytest.mark.asyncio
    async def test_lookup_tokens_distinct_and_sorted(self, store):
        """Should return each chunk ID once, sorted ascending."""
        await self.add_chunk(store, make_chunk("c2", "hiking mountains"))
        await self.add_chunk(store, make_chunk("c1", "hiking lakes"))
        await self.add_chunk(store, make_chunk("c3", "cooking"))

        chunk_ids = await store.lookup_tokens("u1", ["hiking", "mountains", "lakes"])

        assert chunk_ids == ["c1", "c2"]

    @pytest.mark.asyncio
    async def test_lookup_tokens_empty(self, store):
        """Should return an empty list for no tokens or no matches."""
        await self.add_chunk(store, make_chunk("c1", "hiking"))

        assert await store.lookup_tokens("u1", []) == []
        assert await store.lookup_tokens("u1", ["sailing"]) == []

    @pytest.mark.asyncio
    async def test_search_unions_without_duplicates(self, store):
        """Should return each matching chunk once in candidate order."""
        await self.add_chunk(store, make_chunk("c2", "hiking mountains", minutes=2))
        await self.add_chunk(store, make_chunk("c1", "hiking lakes", minutes=1))
        await self.add_chunk(store, make_chunk("c3", "cooking", minutes=3))

        chunks = await store.search_memory_by_tokens("u1", ["hiking", "mountains"])

        assert [c.chunk_id for c in chunks] == ["c1", "c2"]
        assert chunks[1].content == "hiking mountains"
        assert chunks[1].tokens == ["hiking", "mountains"]
        assert chunks[1].importance == 0.5

    @pytest.mark.asyncio
    async def test_search_order_ties_by_chunk_id(self, store):
        """Should order equal created_at by chunk_id."""
        await self.add_chunk(store, make_chunk("b", "hiking"))
        await self.add_chunk(store, make_chunk("a", "hiking"))

        chunks = await store.search_memory_by_tokens("u1", ["hiking"])

        assert [c.chunk_id for c in chunks] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_search_empty_tokens(self, store):
        """Should return an empty list for an empty token list."""
        await self.add_chunk(store, make_chunk("c1", "hiking"))

        assert await store.search_memory_by_tokens("u1", []) == []

    @pytest.mark.asyncio
    async def test_search_is_user_scoped(self, store):
        """Should never return another user's chunks."""
        await self.add_chunk(store, make_chunk("c1", "hiking"))

        assert await store.search_memory_by_tokens("u2", ["hiking"]) == []
        assert await store.lookup_tokens("u2", ["hiking"]) == []

    @pytest.mark.asyncio
    async def test_search_is_replica_scoped(self, store):
        """Should only search the requested replica."""
        await self.add_chunk(store, make_chunk("c1", "hiking"))
        await self.add_chunk(store, make_chunk("c2", "hiking", replica_id="work"))

        default = await store.search_memory_by_tokens("u1", ["hiking"])
        work = await store.search_memory_by_tokens("u1", ["hiking"], replica_id="work")

        assert [c.chunk_id for c in default] == ["c1"]
        assert [c.chunk_id for c in work] == ["c2"]

    @pytest.mark.asyncio
    async def test_separator_in_ids_stays_scoped(self, store):
        """Should keep ids that contain key separators apart."""
        await self.add_chunk(
            store, make_chunk("other-chunk", "hiking", user_id="a#replica#r")
        )

        assert await store.lookup_tokens(
            "a", ["hiking"], replica_id="r#replica#default"
        ) == []
        assert await store.search_memory_by_tokens(
            "a", ["hiking"], replica_id="r#replica#default"
        ) == []

    @pytest.mark.asyncio
    async def test_separator_in_ids_keeps_both_index_rows(self, store):
        """Should not let one user's index row replace another's."""
        await self.add_chunk(store, make_chunk("c1", "hiking", user_id="a#replica#r"))
        await self.add_chunk(
            store, make_chunk("c1", "hiking", user_id="a", replica_id="r#replica#default")
        )

        assert await store.lookup_tokens("a#replica#r", ["hiking"]) == ["c1"]
        found = await store.search_memory_by_tokens(
            "a", ["hiking"], replica_id="r#replica#default"
        )
        assert [(c.user_id, c.replica_id) for c in found] == [("a", "r#replica#default")]

    @pytest.mark.asyncio
    async def test_timestamps_at_millisecond_precision(self, store):
        """Should return the same millisecond timestamps from every backend."""
        chunk = make_chunk("c1", "hiking")
        chunk.created_at = BASE_TIME.replace(microsecond=123456)
        await self.add_chunk(store, chunk)
        await store.store_review(make_review("s1"))
        await store.update_review_status("s1", ReviewStatus.APPROVED)

        found = await store.search_memory_by_tokens("u1", ["hiking"])
        review = await store.get_review("s1")

        assert found[0].created_at == BASE_TIME.replace(microsecond=123000)
        assert review.reviewed_at.microsecond % 1000 == 0

    @pytest.mark.asyncio
    async def test_unindexed_chunk_is_unsearchable(self, store):
        """Should only find chunks through the token index."""
        await store.store_memory(make_chunk("c1", "hiking"))

        assert await store.search_memory_by_tokens("u1", ["hiking"]) == []

    @pytest.mark.asyncio
    async def test_index_tokens_empty_batch(self, store):
        """Should accept an empty batch."""
        await store.index_tokens([])

    # Review queue

    @pytest.mark.asyncio
    async def test_get_absent_review(self, store):
        """Should return None for an unknown session."""
        assert await store.get_review("missing") is None

    @pytest.mark.asyncio
    async def test_store_and_get_review(self, store):
        """Should round-trip a review item with its proposals."""
        await store.store_review(make_review("s1"))

        review = await store.get_review("s1")
        assert review is not None
        assert review.user_id == "u1"
        assert review.status == ReviewStatus.PENDING
        assert review.reviewed_at is None
        assert review.proposed_identity_updates[0].key == "name"
        assert review.proposed_identity_updates[0].confidence == 0.8
        assert review.proposed_memories[0].content == "I love hiking"

    @pytest.mark.asyncio
    async def test_duplicate_review_rejected(self, store):
        """Should refuse a second review for the same session."""
        await store.store_review(make_review("s1"))

        with pytest.raises(ConflictError):
            await store.store_review(make_review("s1"))

    @pytest.mark.asyncio
    async def test_list_pending_reviews(self, store):
        """Should list the user's pending reviews oldest first."""
        await store.store_review(make_review("s2", minutes=2))
        await store.store_review(make_review("s1", minutes=1))
        await store.store_review(make_review("s3", minutes=3))
        await store.store_review(make_review("s4", user_id="u2"))
        await store.update_review_status("s3", ReviewStatus.APPROVED)

        pending = await store.list_pending_reviews("u1")

        assert [r.session_id for r in pending] == ["s1", "s2"]

    @pytest.mark.asyncio
    async def test_update_review_status(self, store):
        """Should set the status and stamp reviewed_at."""
        await store.store_review(make_review("s1"))

        assert await store.update_review_status("s1", ReviewStatus.APPROVED) is True

        review = await store.get_review("s1")
        assert review.status == ReviewStatus.APPROVED
        assert review.reviewed_at is not None

    @pytest.mark.asyncio
    async def test_update_review_status_unknown(self, store):
        """Should return False for an unknown session."""
        assert await store.update_review_status("missing", ReviewStatus.APPROVED) is False
        assert await store.get_review("missing") is None

    @pytest.mark.asyncio
    async def test_update_review_status_expected(self, store):
        """Should only update when the stored status matches."""
        await store.store_review(make_review("s1"))
        await store.update_review_status("s1", ReviewStatus.REJECTED)

        updated = await store.update_review_status(
            "s1", ReviewStatus.APPROVED, expected_status=ReviewStatus.PENDING
        )

        assert updated is False
        assert (await store.get_review("s1")).status == ReviewStatus.REJECTED

    # Health and lifecycle

    @pytest.mark.asyncio
    async def test_ping(self, store):
        """Should answer a ping."""
        await store.ping()

    def test_backend_name(self, store):
        """Should report a non-empty backend name."""
        assert store.backend_name()


class TestInMemoryStorageContract(StorageContract):
    """Run the contract against InMemoryStorage."""

    @pytest.fixture
    def store(self):
        return InMemoryStorage()


@pytest.mark.integration
class TestMongoDBStorageContract(StorageContract):
    """Run the contract against MongoDB (needs TEST_MONGODB_URL)."""

    @pytest.fixture
    def store(self, mongodb_storage):
        return mongodb_storage


@pytest.mark.integration
class TestDynamoDBStorageContract(StorageContract):
    """Run the contract against DynamoDB served by moto."""

    @pytest.fixture
    def store(self, dynamodb_storage):
        return dynamodb_storage
