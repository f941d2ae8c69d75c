"""
Thread-safe in-memory content store.

Suitable for single-instance deployments, development and tests. Contents are
lost when the process exits.
"""

import copy
import logging
import threading
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from .base import ContentStore, Document, Query, matches

logger = logging.getLogger(__name__)


class InMemoryContentStore(ContentStore):
    """
    In-process document store.

    Documents are kept in insertion order; reads iterate in reverse to return
    newest first. Every read and write hands out a copy so callers never share
    state with the store.
    """

    name = "memory"

    def __init__(self):
        self._documents: "OrderedDict[str, Document]" = OrderedDict()
        self._lock = threading.RLock()

    async def insert(self, document: Document) -> Document:
        with self._lock:
            content_id = self.generate_id()
            while content_id in self._documents:
                content_id = self.generate_id()

            stored = copy.deepcopy(document)
            stored["id"] = content_id
            self._documents[content_id] = stored
            return copy.deepcopy(stored)

    async def find_by_id(self, content_id: str) -> Optional[Document]:
        with self._lock:
            document = self._documents.get(content_id)
            return copy.deepcopy(document) if document is not None else None

    def _matching(self, query: Query) -> List[Document]:
        return [
            document
            for document in reversed(self._documents.values())
            if matches(document, query)
        ]

    async def find(
        self,
        query: Query,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Document]:
        with self._lock:
            found = self._matching(query)
            end = None if limit is None else skip + limit
            return copy.deepcopy(found[skip:end])

    async def count_documents(self, query: Query) -> int:
        with self._lock:
            return len(self._matching(query))

    async def find_by_id_and_update(
        self, content_id: str, changes: Document
    ) -> Optional[Document]:
        with self._lock:
            document = self._documents.get(content_id)
            if document is None:
                return None

            document.update(copy.deepcopy(changes))
            document["id"] = content_id
            return copy.deepcopy(document)

    async def find_by_id_and_remove(self, content_id: str) -> Optional[Document]:
        with self._lock:
            return self._documents.pop(content_id, None)

    async def health_check(self) -> Dict[str, Any]:
        with self._lock:
            count = len(self._documents)
        return {
            "status": "healthy",
            "backend": self.name,
            "documents": count,
        }
