"""Token-budget fitting for retrieved chunks.

Candidates are reordered by an importance weight and accepted greedily
until the next one would overflow the budget.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ragctx.types import ChunkType

if TYPE_CHECKING:
    from ragctx.types import Chunk

__all__ = ["chunk_importance_weight", "fit_within_token_limit"]

logger = logging.getLogger(__name__)

_TYPE_WEIGHTS: dict[str, int] = {
    ChunkType.TABLE: 3,
    ChunkType.CODE: 2,
    ChunkType.HEADER: 1,
}

# Section-name keywords and their bonus; each matching keyword adds.
_SECTION_WEIGHTS: tuple[tuple[str, int], ...] = (
    ("api", 2),
    ("function", 2),
    ("class", 2),
    ("summary", 3),
    ("executive", 3),
)


def chunk_importance_weight(chunk: Chunk) -> int:
    """Weight a chunk by content type and section name (base 1)."""
    weight = 1 + _TYPE_WEIGHTS.get(chunk.metadata.type, 0)

    section_lower = chunk.section.lower()
    for keyword, bonus in _SECTION_WEIGHTS:
        if keyword in section_lower:
            weight += bonus

    return weight


def fit_within_token_limit(chunks: list[Chunk], max_tokens: int) -> list[Chunk]:
    """Select chunks by importance until the token budget is reached.

    The reordering is a stable sort, so equal weights keep their ranking.
    Selection stops at the first chunk that would exceed ``max_tokens``;
    later (smaller) chunks are not considered.

    Args:
        chunks: Ranked candidate chunks.
        max_tokens: Token budget for the whole selection.

    Returns:
        Accepted chunks in importance order.
    """
    ordered = sorted(chunks, key=lambda c: -chunk_importance_weight(c))

    result: list[Chunk] = []
    total = 0
    for chunk in ordered:
        if total + chunk.tokens > max_tokens:
            break
        result.append(chunk)
        total += chunk.tokens

    if len(result) < len(chunks):
        logger.debug(
            "Token budget: kept %d/%d chunks (%d/%d tokens)",
            len(result),
            len(chunks),
            total,
            max_tokens,
        )
    return result
