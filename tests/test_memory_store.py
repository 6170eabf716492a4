"""Tests for the in-memory store and hash embeddings."""

from datetime import timedelta

import pytest

from agent_memory.domain.context.context_ranker import cosine_similarity
from agent_memory.domain.context.memory.cache_memory_store import CacheMemoryStore
from agent_memory.domain.context.memory.embedding_provider import HashEmbeddingProvider
from agent_memory.domain.context.memory.memory_store import InMemoryMemoryStore
from agent_memory.domain.models.memory import GroupFilter, MemoryCategory
from tests.helpers import AGENT, NOW, make_record


class TestInMemoryMemoryStore:
    @pytest.mark.asyncio
    async def test_upsert_creates_record(self, store):
        record = await store.upsert(AGENT, "tz", "Europe/Paris", MemoryCategory.PREFERENCE)

        assert record.updated_at == NOW
        assert await store.get(AGENT, "tz") == record
        assert await store.count_active(AGENT) == 1

    @pytest.mark.asyncio
    async def test_upsert_replaces_and_keeps_position(self):
        times = iter([NOW - timedelta(days=2), NOW - timedelta(days=1), NOW])
        store = InMemoryMemoryStore(clock=lambda: next(times))

        await store.upsert(AGENT, "a", "first")
        await store.upsert(AGENT, "b", "second")
        updated = await store.upsert(AGENT, "a", "first, revised")

        assert updated.updated_at == NOW
        assert [r.key for r in store.memories[AGENT].values()] == ["a", "b"]
        assert store.memories[AGENT]["a"].value == "first, revised"

    @pytest.mark.asyncio
    async def test_keys_scoped_per_agent(self, store):
        await store.upsert("agent-a", "k", "for a")
        await store.upsert("agent-b", "k", "for b")

        assert (await store.get("agent-a", "k")).value == "for a"
        assert (await store.get("agent-b", "k")).value == "for b"

    @pytest.mark.asyncio
    async def test_expired_records_excluded(self, store):
        await store.put(AGENT, make_record("live"))
        await store.put(AGENT, make_record("stale", expires_in_days=-1))
        await store.put(AGENT, make_record("later", expires_in_days=5))

        assert await store.count_active(AGENT) == 2
        assert [r.key for r in await store.list_active(AGENT)] == ["live", "later"]
        assert await store.get(AGENT, "stale") is None

    @pytest.mark.asyncio
    async def test_list_active_by_group(self, store):
        await store.put(AGENT, make_record("g", MemoryCategory.GENERAL))
        await store.put(AGENT, make_record("i", MemoryCategory.INSTRUCTION))
        await store.put(AGENT, make_record("h", MemoryCategory.HISTORY))
        await store.put(AGENT, make_record("s", MemoryCategory.STYLE_CORRECTION))

        core = await store.list_active(AGENT, GroupFilter.CORE)
        contextual = await store.list_active(AGENT, GroupFilter.CONTEXTUAL)

        assert [r.key for r in core] == ["i", "s"]
        assert [r.key for r in contextual] == ["g", "h"]

    @pytest.mark.asyncio
    async def test_unknown_agent_is_empty(self, store):
        assert await store.count_active("nobody") == 0
        assert await store.list_active("nobody") == []

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.upsert(AGENT, "k", "v")
        assert await store.delete(AGENT, "k") is True
        assert await store.delete(AGENT, "k") is False

    @pytest.mark.asyncio
    async def test_clear_expired(self, store):
        await store.put(AGENT, make_record("stale", expires_in_days=-1))
        await store.put(AGENT, make_record("live"))
        await store.put("other", make_record("stale", expires_in_days=-2))

        assert await store.clear_expired(AGENT) == 1
        assert await store.clear_expired() == 1
        assert list(store.memories[AGENT]) == ["live"]


class TestCacheMemoryStore:
    @pytest.mark.asyncio
    async def test_set_and_get(self, clock):
        cache = CacheMemoryStore(clock=clock)
        await cache.set("k", {"a": 1})
        assert await cache.get("k") == {"a": 1}

    @pytest.mark.asyncio
    async def test_expired_entries_dropped(self):
        now = [NOW]
        cache = CacheMemoryStore(clock=lambda: now[0])
        await cache.set("k", "v", ttl=60)

        now[0] = NOW + timedelta(seconds=61)

        assert await cache.get("k") is None
        assert "k" not in cache.cache

    @pytest.mark.asyncio
    async def test_clear_expired_and_delete(self):
        now = [NOW]
        cache = CacheMemoryStore(clock=lambda: now[0])
        await cache.set("short", 1, ttl=10)
        await cache.set("long", 2, ttl=1000)

        now[0] = NOW + timedelta(seconds=11)

        assert await cache.clear_expired() == 1
        assert await cache.delete("long") is True
        assert await cache.delete("long") is False

    @pytest.mark.asyncio
    async def test_set_sweeps_expired_entries(self):
        now = [NOW]
        cache = CacheMemoryStore(clock=lambda: now[0])
        await cache.set("memory_context_old", {"memory_count": 1}, ttl=10)

        now[0] = NOW + timedelta(seconds=11)
        await cache.set("memory_context_new", {"memory_count": 2}, ttl=10)

        assert list(cache.cache) == ["memory_context_new"]


class TestHashEmbeddingProvider:
    @pytest.mark.asyncio
    async def test_fixed_dimension_and_deterministic(self):
        provider = HashEmbeddingProvider(dimension=64)
        first = await provider.embed("the user prefers metric units")
        second = await provider.embed("the user prefers metric units")

        assert len(first) == 64
        assert first == second
        assert provider.calls == 2

    @pytest.mark.asyncio
    async def test_shared_words_are_similar(self):
        provider = HashEmbeddingProvider()
        query = await provider.embed("metric units")
        related = await provider.embed("prefers metric units")

        assert cosine_similarity(query, related) > 0.5

    @pytest.mark.asyncio
    async def test_empty_text_gives_zero_vector(self):
        provider = HashEmbeddingProvider(dimension=8)
        assert await provider.embed("") == [0.0] * 8

    def test_rejects_bad_dimension(self):
        with pytest.raises(ValueError):
            HashEmbeddingProvider(dimension=0)
