"""Abstract base class for document stores."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ragctx.types import ChunkedDocument

__all__ = ["BaseDocumentStore"]

logger = logging.getLogger(__name__)


class BaseDocumentStore(ABC):
    """Base class for all document stores.

    A repository of ``ChunkedDocument`` values keyed by document id.
    Subclasses decide where the documents live.
    """

    @abstractmethod
    def get(self, doc_id: str) -> ChunkedDocument | None:
        """Return a document by id, or ``None`` if absent.

        Raises:
            StoreError: If the backing storage cannot be read.
        """

    @abstractmethod
    def put(self, document: ChunkedDocument) -> None:
        """Insert or replace a document.

        Raises:
            StoreError: If the document cannot be persisted.
        """

    @abstractmethod
    def delete(self, doc_id: str) -> bool:
        """Delete a document and all its chunks.

        Returns:
            True if a document was removed.

        Raises:
            StoreError: If the deletion cannot be persisted.
        """

    @abstractmethod
    def list_all(self) -> list[ChunkedDocument]:
        """Return all documents in insertion order.

        Raises:
            StoreError: If the backing storage cannot be read.
        """

    def count(self) -> int:
        """Return the number of stored documents."""
        return len(self.list_all())
