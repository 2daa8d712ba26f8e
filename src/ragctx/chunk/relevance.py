"""Deterministic keyword scoring for lexical chunk retrieval.

Scores chunks by counting query terms found in the chunk's section name
and content, plus boosts for a few query intents that map onto chunk
types. Needs no embedder and is fully deterministic.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ragctx.types import ChunkType

if TYPE_CHECKING:
    from ragctx.types import Chunk

__all__ = ["filter_relevant_chunks", "score_chunk", "tokenize_query"]

logger = logging.getLogger(__name__)

SECTION_MATCH_SCORE = 10
CONTENT_MATCH_SCORE = 1

# Query terms must be longer than this to count.
_MIN_TERM_LENGTH = 2


def tokenize_query(query: str) -> list[str]:
    """Split a query into lowercase terms longer than two characters."""
    return [term for term in query.lower().split() if len(term) > _MIN_TERM_LENGTH]


def score_chunk(chunk: Chunk, query: str, terms: list[str] | None = None) -> int:
    """Score one chunk against a query.

    Args:
        chunk: Candidate chunk.
        query: Raw query text (used for intent boosts).
        terms: Pre-tokenized query terms; computed from ``query`` if omitted.

    Returns:
        Non-negative integer score; 0 means no match.
    """
    query_lower = query.lower()
    if terms is None:
        terms = tokenize_query(query)

    content_lower = chunk.content.lower()
    section_lower = chunk.section.lower()

    score = 0
    for term in terms:
        if term in section_lower:
            score += SECTION_MATCH_SCORE
        if term in content_lower:
            score += CONTENT_MATCH_SCORE

    # Intent boosts
    if "api" in query_lower and chunk.metadata.type == ChunkType.TABLE:
        score += 5
    if "function" in query_lower and "function" in chunk.content:
        score += 3
    if "class" in query_lower and "class" in chunk.content:
        score += 3
    if "dependency" in query_lower and "dependen" in section_lower:
        score += 5

    return score


def filter_relevant_chunks(
    chunks: list[Chunk],
    query: str,
    max_chunks: int = 5,
) -> list[Chunk]:
    """Score, filter, and rank chunks by keyword relevance.

    Chunks scoring zero are dropped. The sort is stable, so equal scores
    keep their original order.

    Args:
        chunks: Candidate chunks.
        query: Free-text query.
        max_chunks: Maximum number of chunks to return.

    Returns:
        Up to ``max_chunks`` chunks, best first.
    """
    if not chunks or max_chunks <= 0:
        return []

    terms = tokenize_query(query)
    scored = [(chunk, score_chunk(chunk, query, terms)) for chunk in chunks]
    scored = [item for item in scored if item[1] > 0]
    scored.sort(key=lambda item: -item[1])

    result = [chunk for chunk, _ in scored[:max_chunks]]
    logger.debug(
        "Lexical scoring: %d/%d chunks matched, returning %d",
        len(scored),
        len(chunks),
        len(result),
    )
    return result
