"""In-memory document store for tests, dry runs and local development."""

import copy
import logging
import threading
import uuid
from typing import Any, Dict, List, Optional, Tuple

from .base import DocumentNotFoundError, DocumentStore

logger = logging.getLogger(__name__)


def _matches(document: dict, filters: Optional[dict]) -> bool:
    if not filters:
        return True
    for key, expected in filters.items():
        actual = document.get(key)
        if isinstance(expected, (list, tuple, set)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


class InMemoryDocumentStore(DocumentStore):
    """Thread-safe dict-of-dicts implementation of ``DocumentStore``."""

    def __init__(self, initial: Optional[Dict[str, List[dict]]] = None):
        self._collections: Dict[str, Dict[str, dict]] = {}
        self._lock = threading.Lock()
        for collection, documents in (initial or {}).items():
            for document in documents:
                self._insert(collection, document)

    def _collection(self, name: str) -> Dict[str, dict]:
        return self._collections.setdefault(name, {})

    def _insert(self, collection: str, document: dict) -> dict:
        stored = copy.deepcopy(document)
        stored.setdefault("id", uuid.uuid4().hex)
        self._collection(collection)[stored["id"]] = stored
        return stored

    async def find_by_id(self, collection: str, doc_id: str) -> Optional[dict]:
        with self._lock:
            document = self._collection(collection).get(doc_id)
            return copy.deepcopy(document) if document is not None else None

    async def find_by_slug(self, collection: str, slug: str) -> Optional[dict]:
        return await self.find_one(collection, {"slug": slug})

    async def find_one(self, collection: str, filters: dict) -> Optional[dict]:
        with self._lock:
            for document in self._collection(collection).values():
                if _matches(document, filters):
                    return copy.deepcopy(document)
        return None

    async def find_all(
        self,
        collection: str,
        filters: Optional[dict] = None,
        limit: Optional[int] = None,
    ) -> List[dict]:
        with self._lock:
            found = [
                copy.deepcopy(document)
                for document in self._collection(collection).values()
                if _matches(document, filters)
            ]
        return found[:limit] if limit is not None else found

    async def insert(self, collection: str, document: dict) -> dict:
        with self._lock:
            stored = self._insert(collection, document)
            logger.debug(f"Inserted {collection}/{stored['id']}")
            return copy.deepcopy(stored)

    async def update(self, collection: str, doc_id: str, fields: dict) -> dict:
        with self._lock:
            document = self._collection(collection).get(doc_id)
            if document is None:
                raise DocumentNotFoundError(collection, doc_id)
            document.update(copy.deepcopy(fields))
            return copy.deepcopy(document)

    async def upsert_by_slug(self, collection: str, slug: str, document: dict) -> Tuple[dict, bool]:
        with self._lock:
            for existing in self._collection(collection).values():
                if existing.get("slug") == slug:
                    existing.update(copy.deepcopy(document))
                    return copy.deepcopy(existing), False
            stored = self._insert(collection, {**document, "slug": slug})
            return copy.deepcopy(stored), True

    async def push(self, collection: str, doc_id: str, field: str, value: Any) -> dict:
        with self._lock:
            document = self._collection(collection).get(doc_id)
            if document is None:
                raise DocumentNotFoundError(collection, doc_id)
            document.setdefault(field, []).append(copy.deepcopy(value))
            return copy.deepcopy(document)

    async def count(self, collection: str, filters: Optional[dict] = None) -> int:
        with self._lock:
            return sum(1 for document in self._collection(collection).values() if _matches(document, filters))

    def dump(self) -> Dict[str, List[dict]]:
        """Snapshot of every collection."""
        with self._lock:
            return {name: copy.deepcopy(list(docs.values())) for name, docs in self._collections.items()}
