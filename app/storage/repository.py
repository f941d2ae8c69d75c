"""
Content repository: CRUD and paginated queries over a ContentStore.

The repository owns the domain rules that sit next to persistence: server
assigned fields at creation, id validity, page arithmetic and translation of
store failures into PersistenceError.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError

from app.auth.identity import Identity
from app.exceptions import (
    ContentNotFoundError,
    InvalidIdentifierError,
    InvalidPageError,
    PersistenceError,
)
from app.models.content import PROTECTED_FIELDS, Content
from src.utils.logging import Timer

from .base import ContentStore, Query

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 12

T = TypeVar("T")


@dataclass
class ContentPage:
    """One page of a paginated content listing."""

    items: List[Content] = field(default_factory=list)
    page: int = 1
    total: int = 0
    total_pages: int = 0


def build_filter(tagged_contest_id: Optional[str] = None) -> Query:
    """Build a store query from list parameters."""
    query: Query = {}
    if tagged_contest_id:
        query["taggedContestID"] = tagged_contest_id
    return query


class ContentRepository:
    """
    Facade over a ContentStore.

    Every store exception other than the domain errors raised here is wrapped
    in PersistenceError carrying the operation name and the cause.
    """

    def __init__(self, store: ContentStore, page_size: int = DEFAULT_PAGE_SIZE):
        self.store = store
        self.page_size = page_size

    async def _run(self, operation: str, call: Awaitable[T]) -> T:
        try:
            with Timer(f"store.{operation}", logger):
                return await call
        except Exception as e:
            logger.error(f"Content store operation '{operation}' failed: {e}")
            raise PersistenceError(operation=operation, original_error=e) from e

    def _to_content(self, operation: str, document: Dict[str, Any]) -> Content:
        """Stored documents that no longer parse are a server-side fault."""
        try:
            return Content.from_document(document)
        except PydanticValidationError as e:
            logger.error(f"Stored content {document.get('id')} is malformed: {e}")
            raise PersistenceError(operation=operation, original_error=e) from e

    def _check_id(self, content_id: str) -> None:
        if not self.store.is_valid_id(content_id):
            raise InvalidIdentifierError(content_id)

    async def create(self, fields: Dict[str, Any], owner: Identity) -> Content:
        """
        Persist a new content record.

        Stars start at zero, nobody has starred it yet, and the owner is the
        identity performing the create regardless of what ``fields`` holds.
        """
        document = {k: v for k, v in fields.items() if k not in PROTECTED_FIELDS}
        document.update(
            {
                "stars": 0,
                "starredBy": [],
                "owner": {"id": owner.id, "username": owner.username},
                "createdAt": datetime.now(timezone.utc).isoformat(),
            }
        )

        stored = await self._run("insert", self.store.insert(document))
        logger.info(f"Created content {stored['id']} for user {owner.id}")
        return self._to_content("insert", stored)

    async def get_by_id(self, content_id: str) -> Content:
        """
        Load one content record.

        Raises:
            InvalidIdentifierError: The id is malformed (checked before querying).
            ContentNotFoundError: No record has this id.
        """
        self._check_id(content_id)
        document = await self._run("find_by_id", self.store.find_by_id(content_id))
        if document is None:
            raise ContentNotFoundError(content_id)
        return self._to_content("find_by_id", document)

    async def list(
        self,
        query: Optional[Query] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> ContentPage:
        """
        Return one page of matching content, newest first.

        Raises:
            InvalidPageError: ``page`` is below 1. No store call is made.
        """
        if page < 1:
            raise InvalidPageError(page)

        query = query or {}
        size = page_size or self.page_size
        skip = (page - 1) * size

        documents = await self._run("find", self.store.find(query, skip=skip, limit=size))
        total = await self._run("count_documents", self.store.count_documents(query))

        return ContentPage(
            items=[self._to_content("find", d) for d in documents],
            page=page,
            total=total,
            total_pages=math.ceil(total / size),
        )

    async def list_all(self, query: Optional[Query] = None) -> List[Content]:
        """Return every matching record, newest first."""
        documents = await self._run("find", self.store.find(query or {}))
        return [self._to_content("find", d) for d in documents]

    async def update(self, content_id: str, changes: Dict[str, Any]) -> Content:
        """
        Apply a partial update and return the record after the change.

        Raises:
            ContentNotFoundError: The record does not exist (or vanished
                since it was loaded).
        """
        self._check_id(content_id)
        changes = {k: v for k, v in changes.items() if k not in PROTECTED_FIELDS}
        document = await self._run(
            "find_by_id_and_update",
            self.store.find_by_id_and_update(content_id, changes),
        )
        if document is None:
            raise ContentNotFoundError(content_id)

        logger.info(f"Updated content {content_id}: fields={sorted(changes)}")
        return self._to_content("find_by_id_and_update", document)

    async def remove(self, content_id: str) -> None:
        """
        Physically delete a record.

        Raises:
            ContentNotFoundError: The record does not exist.
        """
        self._check_id(content_id)
        document = await self._run(
            "find_by_id_and_remove", self.store.find_by_id_and_remove(content_id)
        )
        if document is None:
            raise ContentNotFoundError(content_id)
        logger.info(f"Removed content {content_id}")

    async def health_check(self) -> Dict[str, Any]:
        return await self.store.health_check()

    async def close(self) -> None:
        await self.store.close()
