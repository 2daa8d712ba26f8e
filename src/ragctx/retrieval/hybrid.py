"""Merge lexical and semantic rankings into one hybrid ranking."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ragctx.types import Chunk, SimilarityResult

__all__ = ["BOTH_MATCH_BOOST", "LEXICAL_BASE_SCORE", "merge_hybrid_results"]

LEXICAL_BASE_SCORE = 1.0

# Chunks found by both searches add similarity * BOTH_MATCH_BOOST (uncapped).
BOTH_MATCH_BOOST = 1.5


def merge_hybrid_results(
    lexical: list[Chunk],
    semantic: list[SimilarityResult],
    max_chunks: int,
) -> list[Chunk]:
    """Combine two rankings keyed by chunk id.

    Lexical-only hits score 1.0, semantic-only hits score their similarity,
    and hits in both score ``1.0 + similarity * 1.5``. The final sort is
    stable: equal scores keep lexical-first insertion order.

    Args:
        lexical: Chunks from keyword search, best first.
        semantic: Results from vector search, best first.
        max_chunks: Maximum number of merged chunks.

    Returns:
        Up to ``max_chunks`` chunks, highest combined score first.
    """
    combined: dict[str, tuple[Chunk, float]] = {}

    for chunk in lexical:
        combined.setdefault(chunk.id, (chunk, LEXICAL_BASE_SCORE))

    for result in semantic:
        existing = combined.get(result.chunk.id)
        if existing is not None:
            chunk, score = existing
            combined[result.chunk.id] = (chunk, score + result.similarity * BOTH_MATCH_BOOST)
        else:
            combined[result.chunk.id] = (result.chunk, result.similarity)

    ranked = sorted(combined.values(), key=lambda item: -item[1])
    return [chunk for chunk, _ in ranked[:max_chunks]]
