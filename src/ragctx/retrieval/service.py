"""Retrieval orchestrator for ragctx.

Owns the document collection and composes chunker → embedder → store at
ingestion time, and lexical + semantic search → budget fitting → context
formatting at query time. All collaborators are injected.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from ragctx.chunk.markdown import MarkdownChunker
from ragctx.chunk.relevance import filter_relevant_chunks
from ragctx.config import RetrievalConfig
from ragctx.exceptions import StoreError
from ragctx.retrieval.budget import fit_within_token_limit
from ragctx.retrieval.hybrid import merge_hybrid_results
from ragctx.retrieval.templates import ContextFormatter
from ragctx.types import (
    ChunkedDocument,
    EnhancedMessages,
    Message,
    RetrievalContext,
    RetrievalStats,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ragctx.chunk.base import BaseChunker
    from ragctx.embed.service import EmbeddingService
    from ragctx.store.base import BaseDocumentStore
    from ragctx.types import Chunk

__all__ = ["RetrievalService"]

logger = logging.getLogger(__name__)

USER_ROLE = "user"


def _now_ms() -> int:
    return int(datetime.now(UTC).timestamp() * 1000)


def _rekey(document: ChunkedDocument, doc_id: str) -> ChunkedDocument:
    """Rename a document and move its chunk IDs under the new document ID."""
    prefix = len(document.id)
    chunks = tuple(replace(c, id=doc_id + c.id[prefix:]) for c in document.chunks)
    return replace(document, id=doc_id, chunks=chunks)


class RetrievalService:
    """Document collection plus hybrid retrieval.

    Usage::

        service = RetrievalService(
            store=JsonDocumentStore(path),
            embeddings=EmbeddingService(embedder),
            config=RetrievalConfig(max_context_tokens=4000),
        )
        service.add_document(text, "analysis.md")
        result = service.enhance_messages_with_context(messages)
    """

    def __init__(
        self,
        store: BaseDocumentStore,
        embeddings: EmbeddingService,
        config: RetrievalConfig | None = None,
        chunker: BaseChunker | None = None,
        formatter: ContextFormatter | None = None,
    ) -> None:
        self.store = store
        self.embeddings = embeddings
        self.config = config or RetrievalConfig()
        self.chunker = chunker or MarkdownChunker()
        self.formatter = formatter or ContextFormatter()

        self._documents: dict[str, ChunkedDocument] = {}
        self._load_documents()

    # --- persistence ---

    def _load_documents(self) -> None:
        try:
            documents = self.store.list_all()
        except StoreError as e:
            logger.warning("Failed to load documents, starting empty: %s", e)
            return

        for document in documents:
            self._documents[document.id] = document
        logger.info("Loaded %d documents from store", len(documents))

    def _persist_put(self, document: ChunkedDocument) -> None:
        try:
            self.store.put(document)
        except StoreError as e:
            logger.warning("Document %s kept in memory only: %s", document.id, e)

    def _persist_delete(self, doc_id: str) -> None:
        try:
            self.store.delete(doc_id)
        except StoreError as e:
            logger.warning("Removal of %s not persisted: %s", doc_id, e)

    # --- collection ---

    def add_document(
        self,
        content: str,
        file_name: str,
        title: str | None = None,
    ) -> ChunkedDocument:
        """Chunk, embed and index a document.

        A document previously added from the same ``file_name`` is replaced.

        Raises:
            ChunkError: If the text cannot be chunked.
        """
        logger.info("Adding document %s (%d chars)", file_name, len(content))
        document = self.chunker.chunk_document(content, file_name, title)

        for existing in [d for d in self._documents.values() if d.source_file == file_name]:
            logger.info("Replacing previously indexed %s (%s)", file_name, existing.id)
            self._drop(existing)
            if existing.id != document.id:
                self._persist_delete(existing.id)

        # Distinct file names may slug to the same id
        if document.id in self._documents:
            document = _rekey(document, self._unique_id(document.id))

        try:
            chunks = self.embeddings.embed_chunks(list(document.chunks))
            document = replace(document, chunks=tuple(chunks))
        except Exception as e:
            logger.warning("Storing %s without embeddings: %s", file_name, e)

        self._documents[document.id] = document
        self._persist_put(document)

        logger.info("Indexed %s: %d chunks", file_name, document.total_chunks)
        return document

    def _unique_id(self, doc_id: str) -> str:
        n = 2
        while f"{doc_id}_{n}" in self._documents:
            n += 1
        return f"{doc_id}_{n}"

    def _drop(self, document: ChunkedDocument) -> None:
        del self._documents[document.id]
        self.embeddings.forget(chunk.id for chunk in document.chunks)

    def remove_document(self, doc_id: str) -> bool:
        """Remove a document and all its chunks. Returns False if unknown."""
        document = self._documents.get(doc_id)
        if document is None:
            return False

        self._drop(document)
        self._persist_delete(doc_id)
        logger.info("Removed document %s (%d chunks)", doc_id, document.total_chunks)
        return True

    def get_documents(self) -> list[ChunkedDocument]:
        return list(self._documents.values())

    def get_document(self, doc_id: str) -> ChunkedDocument | None:
        return self._documents.get(doc_id)

    def clear_all_documents(self) -> int:
        """Remove every document. Returns how many were removed."""
        doc_ids = list(self._documents)
        for doc_id in doc_ids:
            self.remove_document(doc_id)
        return len(doc_ids)

    def _all_chunks(self) -> list[Chunk]:
        return [chunk for document in self._documents.values() for chunk in document.chunks]

    # --- retrieval ---

    def find_relevant_context(
        self,
        query: str,
        exclude_documents: Iterable[str] = (),
    ) -> RetrievalContext:
        """Find the chunks most relevant to a query within the token budget.

        Args:
            query: Free-text query.
            exclude_documents: Source file names to leave out.

        Returns:
            The fitted context; empty when nothing matches or on failure.
        """
        try:
            return self._find_relevant_context(query, set(exclude_documents))
        except Exception:
            logger.exception("Context retrieval failed for query %r", query[:80])
            return RetrievalContext.empty()

    def _find_relevant_context(self, query: str, excluded: set[str]) -> RetrievalContext:
        candidates = [c for c in self._all_chunks() if c.metadata.source_file not in excluded]
        if not candidates:
            return RetrievalContext.empty()

        cfg = self.config
        if cfg.enable_hybrid_search:
            half = math.ceil(cfg.max_chunks / 2)
            lexical = filter_relevant_chunks(candidates, query, half)
            semantic = self.embeddings.find_similar_chunks(
                query, candidates, half, cfg.min_similarity
            )
            ranked = merge_hybrid_results(lexical, semantic, cfg.max_chunks)
        else:
            semantic = self.embeddings.find_similar_chunks(
                query, candidates, cfg.max_chunks, cfg.min_similarity
            )
            ranked = [r.chunk for r in semantic]

        selected = self.fit_within_token_limit(ranked)
        context = RetrievalContext(
            chunks=tuple(selected),
            total_tokens=sum(c.tokens for c in selected),
            source_documents=tuple(dict.fromkeys(c.metadata.source_file for c in selected)),
        )

        logger.info(
            "Retrieved %d chunks (%d tokens) from %d documents",
            len(context.chunks),
            context.total_tokens,
            len(context.source_documents),
        )
        return context

    def fit_within_token_limit(self, chunks: list[Chunk]) -> list[Chunk]:
        """Fit ranked chunks into ``max_context_tokens`` by importance."""
        return fit_within_token_limit(chunks, self.config.max_context_tokens)

    def format_context(self, context: RetrievalContext) -> str:
        return self.formatter.format(context)

    def enhance_messages_with_context(
        self,
        messages: list[Message],
        max_context_messages: int | None = None,
    ) -> EnhancedMessages:
        """Insert retrieved context before the last message of a conversation.

        The query is the last ``max_context_messages`` user messages joined
        with spaces. When nothing is retrieved, or ``max_context_messages``
        is 0, the messages come back unchanged.
        """
        original = tuple(messages)
        if not original:
            return EnhancedMessages(messages=original)

        limit = (
            self.config.max_context_messages
            if max_context_messages is None
            else max_context_messages
        )
        recent = [m for m in original if m.role == USER_ROLE][-limit:] if limit > 0 else []
        query = " ".join(m.content for m in recent)
        if not query.strip():
            return EnhancedMessages(messages=original)

        context = self.find_relevant_context(query)
        if not context.chunks:
            return EnhancedMessages(messages=original, context=context)

        try:
            block = self.format_context(context)
        except Exception:
            logger.exception("Failed to format retrieved context")
            return EnhancedMessages(messages=original, context=context)

        timestamp = _now_ms()
        context_message = Message(
            id=f"context-{timestamp}",
            content=block,
            role=USER_ROLE,
            timestamp=timestamp,
        )
        enhanced = list(original)
        enhanced.insert(len(enhanced) - 1, context_message)
        return EnhancedMessages(messages=tuple(enhanced), context=context)

    def get_stats(self) -> RetrievalStats:
        chunks = self._all_chunks()
        total_tokens = sum(c.tokens for c in chunks)
        average = math.floor(total_tokens / len(chunks) + 0.5) if chunks else 0
        return RetrievalStats(
            total_documents=len(self._documents),
            total_chunks=len(chunks),
            total_tokens=total_tokens,
            average_chunk_size=average,
        )
