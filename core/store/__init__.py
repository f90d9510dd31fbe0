"""Document storage for library entities and seed executions."""

from .base import DocumentNotFoundError, DocumentStore
from .memory import InMemoryDocumentStore

__all__ = ["DocumentStore", "DocumentNotFoundError", "InMemoryDocumentStore"]
