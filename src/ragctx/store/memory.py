"""In-process document store with no persistence."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ragctx.store.base import BaseDocumentStore

if TYPE_CHECKING:
    from ragctx.types import ChunkedDocument

__all__ = ["InMemoryDocumentStore"]


class InMemoryDocumentStore(BaseDocumentStore):
    """Dict-backed store; contents vanish with the process."""

    def __init__(self, documents: list[ChunkedDocument] | None = None) -> None:
        self._documents: dict[str, ChunkedDocument] = {}
        for document in documents or []:
            self._documents[document.id] = document

    def get(self, doc_id: str) -> ChunkedDocument | None:
        return self._documents.get(doc_id)

    def put(self, document: ChunkedDocument) -> None:
        self._documents[document.id] = document

    def delete(self, doc_id: str) -> bool:
        return self._documents.pop(doc_id, None) is not None

    def list_all(self) -> list[ChunkedDocument]:
        return list(self._documents.values())

    def count(self) -> int:
        return len(self._documents)
