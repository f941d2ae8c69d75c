"""
Redis-backed content store for distributed deployments.

Key layout (all under ``key_prefix``):

    doc:{id}                      JSON document
    seq                           insertion counter
    index                         sorted set of ids scored by insertion order
    index:taggedContestID:{value} same, per tagged contest

Newest-first reads are reverse range queries on the relevant index.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import redis.asyncio as redis

from src.storage.redis_client import RedisClient

from .base import ContentStore, Document, Query, matches

logger = logging.getLogger(__name__)

TAG_FIELD = "taggedContestID"


class RedisContentStore(ContentStore):
    """
    Content store on JSON string keys and sorted-set indexes.

    Multi-key writes go through a MULTI/EXEC pipeline. Redis connection and
    timeout failures are re-raised as the builtin ConnectionError and
    TimeoutError.
    """

    name = "redis"

    def __init__(self, redis_client: RedisClient, key_prefix: str = "contesthub:contents:"):
        """
        Initialize the Redis store.

        Args:
            redis_client: Shared client wrapper; connects lazily.
            key_prefix: Prefix for all content keys.
        """
        self._redis = redis_client
        self._key_prefix = key_prefix

    def _key(self, *parts: str) -> str:
        return self._key_prefix + ":".join(parts)

    def _doc_key(self, content_id: str) -> str:
        return self._key("doc", content_id)

    def _index_key(self, tag: Optional[Any] = None) -> str:
        if tag is None:
            return self._key("index")
        return self._key("index", TAG_FIELD, str(tag))

    async def _client(self) -> redis.Redis:
        try:
            return await self._redis.get_client()
        except redis.TimeoutError as e:
            raise TimeoutError(f"Redis timed out: {e}") from e
        except redis.ConnectionError as e:
            raise ConnectionError(f"Redis not connected: {e}") from e

    async def _call(self, awaitable):
        try:
            return await awaitable
        except redis.TimeoutError as e:
            raise TimeoutError(f"Redis timed out: {e}") from e
        except redis.ConnectionError as e:
            raise ConnectionError(f"Redis connection lost: {e}") from e

    @staticmethod
    def _decode(raw: Optional[str]) -> Optional[Document]:
        return json.loads(raw) if raw is not None else None

    def _plan(self, query: Query) -> Tuple[str, Query]:
        """Pick the narrowest index for ``query`` and the filter left to apply."""
        remaining = dict(query)
        if TAG_FIELD in remaining and remaining[TAG_FIELD] is not None:
            return self._index_key(remaining.pop(TAG_FIELD)), remaining
        return self._index_key(), remaining

    async def _load_many(self, client: redis.Redis, ids: List[str]) -> List[Document]:
        if not ids:
            return []
        raws = await self._call(client.mget([self._doc_key(i) for i in ids]))
        return [doc for doc in (self._decode(raw) for raw in raws) if doc is not None]

    async def insert(self, document: Document) -> Document:
        client = await self._client()
        content_id = self.generate_id()
        stored = dict(document)
        stored["id"] = content_id

        seq = await self._call(client.incr(self._key("seq")))
        async with client.pipeline(transaction=True) as pipe:
            pipe.set(self._doc_key(content_id), json.dumps(stored))
            pipe.zadd(self._index_key(), {content_id: seq})
            if stored.get(TAG_FIELD) is not None:
                pipe.zadd(self._index_key(stored[TAG_FIELD]), {content_id: seq})
            await self._call(pipe.execute())

        logger.debug(f"Stored content {content_id} at seq {seq}")
        return stored

    async def find_by_id(self, content_id: str) -> Optional[Document]:
        client = await self._client()
        return self._decode(await self._call(client.get(self._doc_key(content_id))))

    async def find(
        self,
        query: Query,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Document]:
        client = await self._client()
        index_key, remaining = self._plan(query)

        if not remaining:
            if limit == 0:
                return []
            end = -1 if limit is None else skip + limit - 1
            ids = await self._call(client.zrevrange(index_key, skip, end))
            return await self._load_many(client, ids)

        ids = await self._call(client.zrevrange(index_key, 0, -1))
        found = [doc for doc in await self._load_many(client, ids) if matches(doc, remaining)]
        end = None if limit is None else skip + limit
        return found[skip:end]

    async def count_documents(self, query: Query) -> int:
        client = await self._client()
        index_key, remaining = self._plan(query)
        if not remaining:
            return await self._call(client.zcard(index_key))

        ids = await self._call(client.zrevrange(index_key, 0, -1))
        return sum(1 for doc in await self._load_many(client, ids) if matches(doc, remaining))

    async def find_by_id_and_update(
        self, content_id: str, changes: Document
    ) -> Optional[Document]:
        client = await self._client()
        current = self._decode(await self._call(client.get(self._doc_key(content_id))))
        if current is None:
            return None

        updated = dict(current)
        updated.update(changes)
        updated["id"] = content_id

        old_tag = current.get(TAG_FIELD)
        new_tag = updated.get(TAG_FIELD)
        score = await self._call(client.zscore(self._index_key(), content_id))

        async with client.pipeline(transaction=True) as pipe:
            pipe.set(self._doc_key(content_id), json.dumps(updated))
            if old_tag != new_tag and score is not None:
                if old_tag is not None:
                    pipe.zrem(self._index_key(old_tag), content_id)
                if new_tag is not None:
                    pipe.zadd(self._index_key(new_tag), {content_id: score})
            await self._call(pipe.execute())

        return updated

    async def find_by_id_and_remove(self, content_id: str) -> Optional[Document]:
        client = await self._client()
        current = self._decode(await self._call(client.get(self._doc_key(content_id))))
        if current is None:
            return None

        async with client.pipeline(transaction=True) as pipe:
            pipe.delete(self._doc_key(content_id))
            pipe.zrem(self._index_key(), content_id)
            if current.get(TAG_FIELD) is not None:
                pipe.zrem(self._index_key(current[TAG_FIELD]), content_id)
            await self._call(pipe.execute())

        return current

    async def health_check(self) -> Dict[str, Any]:
        health = await self._redis.health_check()
        health["backend"] = self.name
        return health

    async def close(self) -> None:
        await self._redis.close()
