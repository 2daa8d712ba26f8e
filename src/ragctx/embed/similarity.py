"""Vector helpers shared by the embedders and the search service."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = ["cosine_similarity", "l2_normalize", "mean_pool"]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors.

    Returns 0.0 when the lengths differ or either vector has zero norm.
    """
    if len(a) != len(b):
        return 0.0

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b, strict=True):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    magnitude = math.sqrt(norm_a) * math.sqrt(norm_b)
    if magnitude == 0.0:
        return 0.0
    return dot / magnitude


def l2_normalize(vector: Sequence[float]) -> list[float]:
    """Scale a vector to unit length; the zero vector is returned as-is."""
    values = [float(v) for v in vector]
    norm = math.sqrt(sum(v * v for v in values))
    if norm == 0.0:
        return values
    return [v / norm for v in values]


def mean_pool(output: Any) -> list[float]:
    """Average token-level vectors into one sentence vector.

    Backends that already pool return a flat vector, which passes through.
    """
    rows = list(output)
    if not rows or not hasattr(rows[0], "__len__"):
        return [float(v) for v in rows]

    width = len(rows[0])
    sums = [0.0] * width
    for row in rows:
        for i, value in enumerate(row):
            sums[i] += float(value)
    return [s / len(rows) for s in sums]
