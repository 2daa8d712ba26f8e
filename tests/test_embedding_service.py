"""Tests for EmbeddingService: vector cache and semantic ranking."""

from __future__ import annotations

import pytest

from ragctx.embed.base import BaseEmbedder
from ragctx.embed.service import EmbeddingService
from ragctx.types import Chunk, ChunkMetadata

_KEYWORDS = ("alpha", "beta", "gamma")


class _KeywordEmbedder(BaseEmbedder):
    """Counts keyword occurrences; records every call."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def generate_embeddings(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [[float(text.lower().count(k)) for k in _KEYWORDS] for text in texts]

    @property
    def dimension(self) -> int:
        return len(_KEYWORDS)


def _make_chunk(chunk_id: str, content: str, embedding: tuple[float, ...] | None = None) -> Chunk:
    return Chunk(
        id=chunk_id,
        content=content,
        section="Notes",
        tokens=1,
        metadata=ChunkMetadata(source_file="doc.md", chunk_index=0),
        embedding=embedding,
    )


@pytest.fixture
def embedder() -> _KeywordEmbedder:
    return _KeywordEmbedder()


@pytest.fixture
def service(embedder) -> EmbeddingService:
    return EmbeddingService(embedder)


class TestEmbedQuery:
    def test_single_vector(self, service):
        assert service.embed_query("alpha alpha beta") == [2.0, 1.0, 0.0]

    def test_dimension(self, service):
        assert service.dimension == 3


class TestFindSimilarChunks:
    def test_ranked_by_similarity(self, service):
        chunks = [
            _make_chunk("beta", "beta only"),
            _make_chunk("alpha", "alpha only"),
            _make_chunk("mixed", "alpha and beta"),
        ]
        results = service.find_similar_chunks("alpha", chunks)
        assert [r.chunk.id for r in results] == ["alpha", "mixed"]
        assert results[0].similarity == pytest.approx(1.0)

    def test_min_similarity_filters(self, service):
        chunks = [_make_chunk("mixed", "alpha beta beta beta")]
        assert service.find_similar_chunks("alpha", chunks, min_similarity=0.5) == []

    def test_top_k(self, service):
        chunks = [_make_chunk(f"c{i}", "alpha") for i in range(6)]
        assert len(service.find_similar_chunks("alpha", chunks, top_k=2)) == 2

    def test_ties_keep_chunk_order(self, service):
        chunks = [_make_chunk(f"c{i}", "alpha gamma") for i in range(3)]
        results = service.find_similar_chunks("alpha gamma", chunks)
        assert [r.chunk.id for r in results] == ["c0", "c1", "c2"]

    def test_empty_chunks_skip_embedder(self, service, embedder):
        assert service.find_similar_chunks("alpha", []) == []
        assert embedder.calls == []

    def test_attached_vectors_are_used(self, service, embedder):
        chunk = _make_chunk("c1", "no keywords", embedding=(1.0, 0.0, 0.0))
        results = service.find_similar_chunks("alpha", [chunk])
        assert [r.chunk.id for r in results] == ["c1"]
        assert embedder.calls == [["alpha"]]


class TestVectorCache:
    def test_chunk_embedded_once(self, service, embedder):
        chunks = [_make_chunk("c1", "alpha"), _make_chunk("c2", "beta")]

        service.find_similar_chunks("alpha", chunks)
        first = service.vector_for(chunks[0])
        service.find_similar_chunks("beta", chunks)

        # one query each plus one batch with both chunks
        assert embedder.calls[1] == ["alpha", "beta"]
        assert len(embedder.calls) == 3
        assert service.vector_for(chunks[0]) is first
        assert service.cached_count == 2

    def test_duplicate_ids_embedded_once(self, service, embedder):
        chunks = [_make_chunk("c1", "alpha"), _make_chunk("c1", "alpha")]
        service.ensure_vectors(chunks)
        assert embedder.calls == [["alpha"]]

    def test_forget(self, service, embedder):
        chunk = _make_chunk("c1", "alpha")
        service.ensure_vectors([chunk])

        assert service.forget(["c1", "unknown"]) == 1
        assert service.vector_for(chunk) is None

        service.ensure_vectors([chunk])
        assert len(embedder.calls) == 2


class TestEmbedChunks:
    def test_attaches_vectors(self, service):
        original = _make_chunk("c1", "alpha gamma")
        (embedded,) = service.embed_chunks([original])

        assert embedded.embedding == (1.0, 0.0, 1.0)
        assert embedded.content == original.content
        assert original.embedding is None

    def test_embedded_chunks_pass_through(self, service, embedder):
        chunk = _make_chunk("c1", "alpha", embedding=(0.0, 0.0, 1.0))
        (result,) = service.embed_chunks([chunk])

        assert result is chunk
        assert embedder.calls == []

    def test_empty(self, service):
        assert service.embed_chunks([]) == []
