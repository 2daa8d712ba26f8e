"""Deterministic term-frequency embeddings.

Used when no neural backend is configured, when it fails to load, and for
any batch the neural backend fails on. Needs no model and never raises.
"""

from __future__ import annotations

import logging
import re

from ragctx.embed.base import BaseEmbedder
from ragctx.embed.similarity import l2_normalize
from ragctx.exceptions import EmbeddingError

__all__ = ["FallbackEmbedder"]

logger = logging.getLogger(__name__)

_NON_WORD_RE = re.compile(r"[^\w\s]")

# Words must be longer than this to enter the vocabulary.
_MIN_WORD_LENGTH = 2


def _terms(text: str) -> list[str]:
    """Lowercase, strip punctuation, keep words longer than two characters."""
    words = _NON_WORD_RE.sub(" ", text.lower()).split()
    return [w for w in words if len(w) > _MIN_WORD_LENGTH]


class FallbackEmbedder(BaseEmbedder):
    """Bag-of-words embedder over a per-call vocabulary.

    The vocabulary is built from all texts of one call in first-occurrence
    order and capped at ``dimension`` entries. Each text becomes an
    L2-normalized term-frequency vector; terms outside the vocabulary are
    ignored and texts without usable terms map to the zero vector.
    """

    def __init__(self, dimension: int = 384) -> None:
        if dimension < 1:
            raise EmbeddingError(f"dimension must be >= 1, got {dimension}")
        self._dimension = dimension

    def generate_embeddings(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        processed = [_terms(text) for text in texts]

        vocabulary: dict[str, int] = {}
        for words in processed:
            for word in words:
                if len(vocabulary) >= self._dimension:
                    break
                if word not in vocabulary:
                    vocabulary[word] = len(vocabulary)

        vectors: list[list[float]] = []
        for words in processed:
            counts = [0.0] * self._dimension
            for word in words:
                index = vocabulary.get(word)
                if index is not None:
                    counts[index] += 1.0
            vectors.append(l2_normalize(counts))

        logger.debug(
            "Fallback embeddings for %d texts (vocabulary=%d)", len(texts), len(vocabulary)
        )
        return vectors

    @property
    def dimension(self) -> int:
        return self._dimension
