"""Document store contract used by the seeder."""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Tuple

# Collection names
APPROACHES = "approaches"
ROOM_TYPES = "room_types"
CATEGORIES = "categories"
SUB_CATEGORIES = "sub_categories"
COLORS = "colors"
STYLES = "styles"
MATERIALS = "materials"
MATERIAL_CATEGORIES = "material_categories"
MATERIAL_TYPES = "material_types"
TEXTURES = "textures"
STYLE_MATERIALS = "style_materials"
STYLE_IMAGES = "style_images"
SEED_EXECUTIONS = "seed_executions"


class DocumentNotFoundError(KeyError):
    """No document with the given id exists in the collection."""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id}")
        self.collection = collection
        self.doc_id = doc_id


class DocumentStore(ABC):
    """
    Minimal document database contract.

    Documents are plain dicts with a string ``id``. Filters are equality
    matches on top-level fields; a list value matches any of its members.
    Reads return copies, so mutating a returned document never changes the
    stored one.
    """

    @abstractmethod
    async def find_by_id(self, collection: str, doc_id: str) -> Optional[dict]:
        """Return the document or None."""

    @abstractmethod
    async def find_by_slug(self, collection: str, slug: str) -> Optional[dict]:
        """Return the first document with the given slug or None."""

    @abstractmethod
    async def find_one(self, collection: str, filters: dict) -> Optional[dict]:
        """Return the first matching document or None."""

    @abstractmethod
    async def find_all(
        self,
        collection: str,
        filters: Optional[dict] = None,
        limit: Optional[int] = None,
    ) -> List[dict]:
        """Return matching documents in insertion order."""

    @abstractmethod
    async def insert(self, collection: str, document: dict) -> dict:
        """Insert a document, assigning an id when missing, and return it."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: dict) -> dict:
        """
        Set top-level fields on a document and return the result.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """

    @abstractmethod
    async def upsert_by_slug(self, collection: str, slug: str, document: dict) -> Tuple[dict, bool]:
        """Create or update the document with ``slug``; returns (document, created)."""

    @abstractmethod
    async def push(self, collection: str, doc_id: str, field: str, value: Any) -> dict:
        """
        Atomically append ``value`` to the array ``field`` and return the result.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """

    @abstractmethod
    async def count(self, collection: str, filters: Optional[dict] = None) -> int:
        """Count matching documents."""
