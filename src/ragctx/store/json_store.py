"""JSON file document store.

Keeps every document, chunk and chunk vector in a single JSON file that is
rewritten after each mutation.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from ragctx.exceptions import StoreError
from ragctx.store.base import BaseDocumentStore
from ragctx.types import Chunk, ChunkedDocument, ChunkMetadata, DocumentMetadata

if TYPE_CHECKING:
    from pathlib import Path

__all__ = ["SCHEMA_VERSION", "JsonDocumentStore", "document_from_dict", "document_to_dict"]

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1"


def _chunk_to_dict(chunk: Chunk) -> dict[str, Any]:
    """Serialize a Chunk to a dict."""
    meta = chunk.metadata
    d: dict[str, Any] = {
        "id": chunk.id,
        "content": chunk.content,
        "section": chunk.section,
        "tokens": chunk.tokens,
        "metadata": {
            "source_file": meta.source_file,
            "chunk_index": meta.chunk_index,
            "type": meta.type,
        },
    }
    if meta.start_line is not None:
        d["metadata"]["start_line"] = meta.start_line
    if meta.end_line is not None:
        d["metadata"]["end_line"] = meta.end_line
    if chunk.subsection is not None:
        d["subsection"] = chunk.subsection
    if chunk.embedding is not None:
        d["embedding"] = list(chunk.embedding)
    return d


def _chunk_from_dict(data: dict[str, Any]) -> Chunk:
    """Deserialize a Chunk from a dict."""
    meta = data["metadata"]
    embedding = data.get("embedding")
    return Chunk(
        id=str(data["id"]),
        content=str(data["content"]),
        section=str(data["section"]),
        tokens=int(data["tokens"]),
        subsection=data.get("subsection"),
        embedding=tuple(float(v) for v in embedding) if embedding is not None else None,
        metadata=ChunkMetadata(
            source_file=str(meta["source_file"]),
            chunk_index=int(meta["chunk_index"]),
            start_line=meta.get("start_line"),
            end_line=meta.get("end_line"),
            type=str(meta.get("type", "content")),
        ),
    )


def document_to_dict(document: ChunkedDocument) -> dict[str, Any]:
    """Serialize a ChunkedDocument to a JSON-compatible dict."""
    return {
        "id": document.id,
        "title": document.title,
        "source_file": document.source_file,
        "total_chunks": document.total_chunks,
        "created_at": document.created_at,
        "metadata": {
            "total_size": document.metadata.total_size,
            "language": document.metadata.language,
            "repository_path": document.metadata.repository_path,
        },
        "chunks": [_chunk_to_dict(c) for c in document.chunks],
    }


def document_from_dict(data: dict[str, Any]) -> ChunkedDocument:
    """Deserialize a ChunkedDocument from a dict.

    Raises:
        StoreError: If required fields are missing or malformed.
    """
    required = ("id", "source_file", "chunks")
    missing = [k for k in required if k not in data]
    if missing:
        raise StoreError(f"Document entry missing required fields: {missing}")

    try:
        chunks = tuple(_chunk_from_dict(c) for c in data["chunks"])
        meta = data.get("metadata", {})
        return ChunkedDocument(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            source_file=str(data["source_file"]),
            total_chunks=len(chunks),
            chunks=chunks,
            created_at=int(data.get("created_at", 0)),
            metadata=DocumentMetadata(
                total_size=int(meta.get("total_size", 0)),
                language=meta.get("language"),
                repository_path=meta.get("repository_path"),
            ),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StoreError(f"Malformed document entry {data.get('id')!r}: {e}") from e


class JsonDocumentStore(BaseDocumentStore):
    """Document store persisted to one JSON file.

    The file is read on first access. Mutations update memory first and
    then rewrite the file, so a failed write keeps the in-memory state and
    the next successful write makes it durable.

    Usage::

        store = JsonDocumentStore(project_root / ".ragctx" / "documents.json")
        store.put(document)
        store.list_all()
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._documents: dict[str, ChunkedDocument] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, ChunkedDocument]:
        if self._documents is not None:
            return self._documents

        documents: dict[str, ChunkedDocument] = {}
        if self._path.exists():
            try:
                data = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.error("Failed to load documents from %s: %s", self._path, e)
                raise StoreError(f"Failed to load documents from {self._path}: {e}") from e

            if not isinstance(data, dict):
                raise StoreError(f"Unexpected document file layout in {self._path}")

            for doc_data in data.get("documents", []):
                document = document_from_dict(doc_data)
                documents[document.id] = document
            logger.info("Loaded %d documents from %s", len(documents), self._path)

        self._documents = documents
        return documents

    def _save(self) -> None:
        documents = self._documents or {}
        data = {
            "schema_version": SCHEMA_VERSION,
            "documents": [document_to_dict(d) for d in documents.values()],
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            logger.error("Failed to save documents to %s: %s", self._path, e)
            raise StoreError(f"Failed to save documents to {self._path}: {e}") from e
        logger.debug("Saved %d documents to %s", len(documents), self._path)

    def get(self, doc_id: str) -> ChunkedDocument | None:
        return self._load().get(doc_id)

    def put(self, document: ChunkedDocument) -> None:
        self._load()[document.id] = document
        self._save()

    def delete(self, doc_id: str) -> bool:
        documents = self._load()
        if doc_id not in documents:
            return False
        del documents[doc_id]
        self._save()
        return True

    def list_all(self) -> list[ChunkedDocument]:
        return list(self._load().values())
