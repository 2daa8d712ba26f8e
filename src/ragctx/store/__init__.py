"""Document store: repository interface and implementations."""

from ragctx.store.base import BaseDocumentStore
from ragctx.store.json_store import JsonDocumentStore
from ragctx.store.memory import InMemoryDocumentStore

__all__ = ["BaseDocumentStore", "InMemoryDocumentStore", "JsonDocumentStore"]
