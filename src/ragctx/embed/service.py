"""Semantic search over chunks with a memoized chunk-vector cache."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from ragctx.embed.similarity import cosine_similarity
from ragctx.types import SimilarityResult

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ragctx.embed.base import BaseEmbedder
    from ragctx.types import Chunk

__all__ = ["EmbeddingService"]

logger = logging.getLogger(__name__)


class EmbeddingService:
    """Embeds texts and chunks and ranks chunks by similarity to a query.

    Chunks are immutable, so vectors computed for chunks that arrive
    without one are kept in a cache keyed by chunk id. A chunk's vector is
    computed at most once: later lookups return the same tuple.
    """

    def __init__(self, embedder: BaseEmbedder) -> None:
        self.embedder = embedder
        self._cache: dict[str, tuple[float, ...]] = {}

    @property
    def dimension(self) -> int:
        return self.embedder.dimension

    @property
    def cached_count(self) -> int:
        return len(self._cache)

    def generate_embeddings(self, texts: list[str]) -> list[list[float]]:
        return self.embedder.generate_embeddings(list(texts))

    def embed_query(self, text: str) -> list[float]:
        vectors = self.embedder.generate_embeddings([text])
        return vectors[0] if vectors else [0.0] * self.dimension

    def vector_for(self, chunk: Chunk) -> tuple[float, ...] | None:
        """Return the attached or cached vector of a chunk, if any."""
        if chunk.embedding is not None:
            return chunk.embedding
        return self._cache.get(chunk.id)

    def ensure_vectors(self, chunks: list[Chunk]) -> list[tuple[float, ...]]:
        """Return a vector per chunk, embedding only those without one.

        Missing vectors are generated in a single call and cached.
        """
        missing: dict[str, str] = {}
        for chunk in chunks:
            if self.vector_for(chunk) is None and chunk.id not in missing:
                missing[chunk.id] = chunk.content

        if missing:
            vectors = self.embedder.generate_embeddings(list(missing.values()))
            for chunk_id, vector in zip(missing, vectors, strict=True):
                self._cache[chunk_id] = tuple(vector)
            logger.info("Cached embeddings for %d chunks", len(missing))

        return [self.vector_for(chunk) or () for chunk in chunks]

    def find_similar_chunks(
        self,
        query: str,
        chunks: list[Chunk],
        top_k: int = 5,
        min_similarity: float = 0.1,
    ) -> list[SimilarityResult]:
        """Rank chunks by cosine similarity to the query.

        Args:
            query: Free-text query, embedded once.
            chunks: Candidate chunks; vectors are computed for any lacking one.
            top_k: Maximum number of results.
            min_similarity: Results below this similarity are dropped.

        Returns:
            Up to ``top_k`` results, most similar first; ties keep chunk order.
        """
        if not chunks or top_k <= 0:
            return []

        query_vector = self.embed_query(query)
        vectors = self.ensure_vectors(chunks)

        results = [
            SimilarityResult(chunk=chunk, similarity=cosine_similarity(query_vector, vector))
            for chunk, vector in zip(chunks, vectors, strict=True)
        ]
        results = [r for r in results if r.similarity >= min_similarity]
        results.sort(key=lambda r: -r.similarity)

        logger.debug(
            "Semantic search: %d/%d chunks above %.2f", len(results), len(chunks), min_similarity
        )
        return results[:top_k]

    def embed_chunks(self, chunks: list[Chunk]) -> list[Chunk]:
        """Return chunks with ``embedding`` attached.

        Chunks that already carry a vector are returned unchanged.
        """
        if not chunks:
            return []

        vectors = self.ensure_vectors(chunks)
        return [
            chunk if chunk.embedding is not None else replace(chunk, embedding=vector)
            for chunk, vector in zip(chunks, vectors, strict=True)
        ]

    def forget(self, chunk_ids: Iterable[str]) -> int:
        """Evict cached vectors. Returns the number of entries removed."""
        removed = 0
        for chunk_id in chunk_ids:
            if self._cache.pop(chunk_id, None) is not None:
                removed += 1
        return removed
