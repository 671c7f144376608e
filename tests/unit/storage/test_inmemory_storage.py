"""InMemoryStorage specifics beyond the shared storage contract."""

from datetime import UTC, datetime

import pytest

from memlane.identity.models import IdentityFact
from memlane.memory.models import MemoryChunk, TokenEntry
from memlane.review.models import IdentityProposal, ReviewItem
from memlane.storage.stores.inmemory import InMemoryStorage


@pytest.fixture
def store() -> InMemoryStorage:
    return InMemoryStorage()


class TestCopyIsolation:
    """Records never share state with callers."""

    @pytest.mark.asyncio
    async def test_identity_mutation_after_write(self, store: InMemoryStorage) -> None:
        fact = IdentityFact(user_id="u1", key="pets", value=["cat"], version=1)
        await store.set_identity(fact)

        fact.value.append("dog")

        stored = await store.get_identity("u1", "pets")
        assert stored.value == ["cat"]

    @pytest.mark.asyncio
    async def test_chunk_mutation_after_read(self, store: InMemoryStorage) -> None:
        chunk = MemoryChunk(
            user_id="u1",
            chunk_id="c1",
            content="hiking trips",
            tokens=["hiking", "trips"],
            created_at=datetime(2024, 1, 1, tzinfo=UTC),
        )
        await store.store_memory(chunk)
        await store.index_tokens(
            [
                TokenEntry(token="hiking", user_id="u1", chunk_id="c1", timestamp=chunk.created_at)
            ]
        )

        first = (await store.search_memory_by_tokens("u1", ["hiking"]))[0]
        first.tokens.clear()

        second = (await store.search_memory_by_tokens("u1", ["hiking"]))[0]
        assert second.tokens == ["hiking", "trips"]

    @pytest.mark.asyncio
    async def test_review_mutation_after_read(self, store: InMemoryStorage) -> None:
        await store.store_review(
            ReviewItem(
                session_id="s1",
                user_id="u1",
                proposed_identity_updates=[IdentityProposal(key="name", value="Ann", confidence=0.8)],
            )
        )

        item = await store.get_review("s1")
        item.proposed_identity_updates.clear()

        assert len((await store.get_review("s1")).proposed_identity_updates) == 1


class TestTokenIndex:
    @pytest.mark.asyncio
    async def test_index_entry_without_chunk_is_skipped(self, store: InMemoryStorage) -> None:
        """An index row pointing at a missing chunk yields no result."""
        await store.index_tokens(
            [
                TokenEntry(
                    token="hiking",
                    user_id="u1",
                    chunk_id="ghost",
                    timestamp=datetime(2024, 1, 1, tzinfo=UTC),
                )
            ]
        )

        assert await store.lookup_tokens("u1", ["hiking"]) == ["ghost"]
        assert await store.search_memory_by_tokens("u1", ["hiking"]) == []

    @pytest.mark.asyncio
    async def test_connect_and_close_are_noops(self, store: InMemoryStorage) -> None:
        await store.connect()
        await store.ping()
        await store.close()
