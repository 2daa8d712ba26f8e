"""Retrieval data contracts for ragctx.

Frozen dataclasses that flow between the engine's stages:
  text → ChunkedDocument(chunks) → chunks with vectors → RetrievalContext
"""

from __future__ import annotations

from dataclasses import dataclass, field

__all__ = [
    "CHUNK_TYPES",
    "Chunk",
    "ChunkMetadata",
    "ChunkType",
    "ChunkedDocument",
    "DocumentMetadata",
    "EnhancedMessages",
    "Message",
    "RetrievalContext",
    "RetrievalStats",
    "SimilarityResult",
]


class ChunkType:
    """Content classification assigned to every chunk."""

    HEADER = "header"
    CONTENT = "content"
    TABLE = "table"
    CODE = "code"
    LIST = "list"


CHUNK_TYPES: frozenset[str] = frozenset({
    ChunkType.HEADER,
    ChunkType.CONTENT,
    ChunkType.TABLE,
    ChunkType.CODE,
    ChunkType.LIST,
})


@dataclass(frozen=True)
class ChunkMetadata:
    """Positional metadata attached to every chunk."""

    source_file: str
    chunk_index: int
    start_line: int | None = None
    end_line: int | None = None
    type: str = ChunkType.CONTENT


@dataclass(frozen=True)
class Chunk:
    """A retrievable unit of document text.

    ``tokens`` is fixed when the chunker creates the chunk. ``embedding``
    is attached later by producing a new value, never by mutation.
    """

    id: str
    content: str
    section: str
    tokens: int
    metadata: ChunkMetadata
    subsection: str | None = None
    embedding: tuple[float, ...] | None = None


@dataclass(frozen=True)
class DocumentMetadata:
    """Document-level metadata."""

    total_size: int
    language: str | None = None
    repository_path: str | None = None


@dataclass(frozen=True)
class ChunkedDocument:
    """A source document split into its chunks."""

    id: str
    title: str
    source_file: str
    total_chunks: int
    chunks: tuple[Chunk, ...]
    created_at: int
    metadata: DocumentMetadata


@dataclass(frozen=True)
class SimilarityResult:
    """A semantic search hit: chunk + cosine similarity to the query."""

    chunk: Chunk
    similarity: float


@dataclass(frozen=True)
class RetrievalContext:
    """Chunks selected for one query, fitted to the token budget."""

    chunks: tuple[Chunk, ...] = ()
    total_tokens: int = 0
    source_documents: tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> RetrievalContext:
        return cls()


@dataclass(frozen=True)
class Message:
    """A conversation turn. Only ``role`` and ``content`` are read."""

    id: str
    content: str
    role: str
    timestamp: int = 0


@dataclass(frozen=True)
class EnhancedMessages:
    """Result of injecting retrieved context into a conversation."""

    messages: tuple[Message, ...]
    context: RetrievalContext = field(default_factory=RetrievalContext)


@dataclass(frozen=True)
class RetrievalStats:
    """Collection-wide counters."""

    total_documents: int
    total_chunks: int
    total_tokens: int
    average_chunk_size: int
