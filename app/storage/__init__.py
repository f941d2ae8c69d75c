"""
Content storage for the Contest Hub content API.

``build_content_store`` picks the backend from settings. Redis is used only
when both requested and configured; otherwise the in-memory store is used.
"""

import logging

from src.config import Settings
from src.storage.redis_client import RedisClient

from .base import ContentStore, new_content_id
from .memory import InMemoryContentStore
from .redis_store import RedisContentStore
from .repository import ContentPage, ContentRepository, build_filter

logger = logging.getLogger(__name__)


def build_content_store(settings: Settings) -> ContentStore:
    """Create the content store selected by CONTENT_STORAGE_BACKEND."""
    backend = settings.storage.content_storage_backend

    if backend == "redis":
        if settings.redis.is_configured:
            logger.info("Content store using Redis backend")
            return RedisContentStore(
                RedisClient(settings.redis.redis_url),
                key_prefix=settings.storage.content_key_prefix,
            )
        logger.warning("CONTENT_STORAGE_BACKEND=redis but REDIS_URL is not set, using in-memory")

    logger.info("Content store using in-memory backend")
    return InMemoryContentStore()


def build_content_repository(settings: Settings) -> ContentRepository:
    return ContentRepository(
        build_content_store(settings),
        page_size=settings.content.content_page_size,
    )


__all__ = [
    "ContentStore",
    "InMemoryContentStore",
    "RedisContentStore",
    "ContentRepository",
    "ContentPage",
    "build_filter",
    "build_content_store",
    "build_content_repository",
    "new_content_id",
]
