"""
Document store interface for content records.

Stores hold plain JSON-compatible dicts in wire form (camelCase keys). They
know nothing about pydantic models or domain errors; the repository layer
translates between the two.
"""

import re
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

Document = Dict[str, Any]
Query = Dict[str, Any]

_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def new_content_id() -> str:
    """Generate a fresh opaque content id."""
    return uuid.uuid4().hex


def matches(document: Document, query: Query) -> bool:
    """Equality match of every query key against the document."""
    return all(document.get(key) == value for key, value in query.items())


class ContentStore(ABC):
    """Abstract base class for content storage backends."""

    name = "abstract"

    def is_valid_id(self, content_id: str) -> bool:
        """Check whether ``content_id`` is well-formed for this store."""
        return bool(content_id) and bool(_ID_PATTERN.match(content_id))

    def generate_id(self) -> str:
        return new_content_id()

    @abstractmethod
    async def insert(self, document: Document) -> Document:
        """
        Persist a new document.

        Args:
            document: Document without an id; the store assigns one.

        Returns:
            The stored document including its ``id``.
        """
        pass

    @abstractmethod
    async def find_by_id(self, content_id: str) -> Optional[Document]:
        """Return the document with ``content_id`` or None."""
        pass

    @abstractmethod
    async def find(
        self,
        query: Query,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Document]:
        """
        Return documents matching ``query``, newest first.

        Args:
            query: Field equality filter; empty matches everything.
            skip: Number of matching documents to skip.
            limit: Maximum number of documents to return, None for all.
        """
        pass

    @abstractmethod
    async def count_documents(self, query: Query) -> int:
        """Count documents matching ``query``."""
        pass

    @abstractmethod
    async def find_by_id_and_update(
        self, content_id: str, changes: Document
    ) -> Optional[Document]:
        """
        Apply ``changes`` to a document.

        Keys not present in ``changes`` are left as they are.

        Returns:
            The document after the update, or None if it does not exist.
        """
        pass

    @abstractmethod
    async def find_by_id_and_remove(self, content_id: str) -> Optional[Document]:
        """Delete a document, returning it, or None if it did not exist."""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Report backend health for the storage health endpoint."""
        pass

    async def close(self) -> None:
        """Release backend resources."""
        return None
