"""
Shared async Redis connection for the content store.

Connects on first use and pings before handing the connection out; a failed
attempt is not cached, so the next call tries again.
"""

import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS = 5.0


class RedisClient:
    def __init__(self, redis_url: str) -> None:
        self.redis_url = redis_url
        self._client: Optional[redis.Redis] = None

    async def get_client(self) -> redis.Redis:
        """
        Raises:
            redis.ConnectionError: If Redis cannot be reached.
            redis.TimeoutError: If the connection attempt times out.
        """
        if self._client is not None:
            return self._client

        client = redis.from_url(
            self.redis_url,
            decode_responses=True,
            socket_connect_timeout=CONNECT_TIMEOUT_SECONDS,
            socket_timeout=CONNECT_TIMEOUT_SECONDS,
        )
        try:
            await client.ping()
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning(f"Redis connection failed: {type(e).__name__}")
            await client.aclose()
            raise

        logger.info("Redis connection established")
        self._client = client
        return client

    async def close(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.aclose()
        except redis.RedisError as e:
            logger.warning(f"Error closing Redis connection: {e}")
        finally:
            self._client = None

    async def health_check(self) -> Dict[str, Any]:
        """Ping Redis; connection failures are reported, not raised."""
        try:
            client = await self.get_client()
            info = await client.info("server")
        except (redis.ConnectionError, redis.TimeoutError) as e:
            return {"status": "unhealthy", "connected": False, "error": type(e).__name__}
        return {
            "status": "healthy",
            "connected": True,
            "redis_version": info.get("redis_version", "unknown"),
        }
