"""
Tests for the Redis content store and backend selection.

The Redis client is mocked; these tests cover key layout, failure
translation and the factory's fallback, not Redis itself.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import redis.asyncio as redis

from app.exceptions import ErrorCode, PersistenceError
from app.storage import (
    ContentRepository,
    InMemoryContentStore,
    RedisContentStore,
    build_content_store,
)
from src.storage.redis_client import RedisClient


def make_store(client=None, get_client_error=None):
    wrapper = MagicMock()
    if get_client_error is not None:
        wrapper.get_client = AsyncMock(side_effect=get_client_error)
    else:
        wrapper.get_client = AsyncMock(return_value=client)
    wrapper.health_check = AsyncMock(return_value={"status": "healthy", "connected": True})
    wrapper.close = AsyncMock()
    return RedisContentStore(wrapper, key_prefix="test:"), wrapper


class TestRedisContentStore:

    @pytest.mark.asyncio
    async def test_find_by_id_reads_document_key(self):
        client = MagicMock()
        client.get = AsyncMock(return_value=json.dumps({"id": "a" * 32, "title": "T"}))
        store, _ = make_store(client)

        document = await store.find_by_id("a" * 32)

        client.get.assert_awaited_once_with("test:doc:" + "a" * 32)
        assert document["title"] == "T"

    @pytest.mark.asyncio
    async def test_find_by_id_missing(self):
        client = MagicMock()
        client.get = AsyncMock(return_value=None)
        store, _ = make_store(client)

        assert await store.find_by_id("a" * 32) is None

    @pytest.mark.asyncio
    async def test_find_uses_tag_index_newest_first(self):
        client = MagicMock()
        client.zrevrange = AsyncMock(return_value=["id2", "id1"])
        client.mget = AsyncMock(
            return_value=[json.dumps({"id": "id2"}), json.dumps({"id": "id1"})]
        )
        store, _ = make_store(client)

        found = await store.find({"taggedContestID": "c1"}, skip=12, limit=12)

        client.zrevrange.assert_awaited_once_with("test:index:taggedContestID:c1", 12, 23)
        assert [d["id"] for d in found] == ["id2", "id1"]

    @pytest.mark.asyncio
    async def test_count_uses_index_cardinality(self):
        client = MagicMock()
        client.zcard = AsyncMock(return_value=7)
        store, _ = make_store(client)

        assert await store.count_documents({}) == 7
        client.zcard.assert_awaited_once_with("test:index")

    @pytest.mark.asyncio
    async def test_connection_error_translated(self):
        store, _ = make_store(get_client_error=redis.ConnectionError("refused"))

        with pytest.raises(ConnectionError):
            await store.find({})

    @pytest.mark.asyncio
    async def test_timeout_translated(self):
        client = MagicMock()
        client.get = AsyncMock(side_effect=redis.TimeoutError("slow"))
        store, _ = make_store(client)

        with pytest.raises(TimeoutError):
            await store.find_by_id("a" * 32)

    @pytest.mark.asyncio
    async def test_repository_reports_connection_error(self):
        store, _ = make_store(get_client_error=redis.ConnectionError("refused"))
        repository = ContentRepository(store)

        with pytest.raises(PersistenceError) as exc_info:
            await repository.list(page=1)

        assert exc_info.value.error_code == ErrorCode.CONNECTION_ERROR

    @pytest.mark.asyncio
    async def test_health_check_names_backend(self):
        store, wrapper = make_store(MagicMock())

        health = await store.health_check()

        assert health["backend"] == "redis"
        wrapper.health_check.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_closes_client(self):
        store, wrapper = make_store(MagicMock())
        await store.close()
        wrapper.close.assert_awaited_once()


class TestRedisClient:
    """Connection handling, with redis.from_url patched."""

    @pytest.mark.asyncio
    async def test_failed_connect_is_not_cached(self):
        connection = MagicMock()
        connection.ping = AsyncMock(side_effect=redis.ConnectionError("refused"))
        connection.aclose = AsyncMock()

        with patch("src.storage.redis_client.redis.from_url", return_value=connection) as from_url:
            client = RedisClient("redis://localhost:6379/0")
            health = await client.health_check()
            with pytest.raises(redis.ConnectionError):
                await client.get_client()

        assert health == {"status": "unhealthy", "connected": False, "error": "ConnectionError"}
        assert from_url.call_count == 2
        assert connection.aclose.await_count == 2

    @pytest.mark.asyncio
    async def test_connection_reused(self):
        connection = MagicMock()
        connection.ping = AsyncMock()
        connection.info = AsyncMock(return_value={"redis_version": "7.2.0"})

        with patch("src.storage.redis_client.redis.from_url", return_value=connection) as from_url:
            client = RedisClient("redis://localhost:6379/0")
            health = await client.health_check()
            assert await client.get_client() is connection

        assert health["redis_version"] == "7.2.0"
        from_url.assert_called_once()


class TestBuildContentStore:
    """Backend selection from settings."""

    def test_memory_by_default(self, settings_env):
        settings = settings_env(CONTENT_STORAGE_BACKEND="memory")
        assert isinstance(build_content_store(settings), InMemoryContentStore)

    def test_redis_when_configured(self, settings_env):
        settings = settings_env(
            CONTENT_STORAGE_BACKEND="redis", REDIS_URL="redis://localhost:6379/0"
        )
        assert isinstance(build_content_store(settings), RedisContentStore)

    def test_redis_without_url_falls_back(self, settings_env, monkeypatch):
        monkeypatch.delenv("REDIS_URL", raising=False)
        settings = settings_env(CONTENT_STORAGE_BACKEND="redis")

        assert isinstance(build_content_store(settings), InMemoryContentStore)
