"""Neural embedder with lazy one-shot backend loading and batch fallback.

The backend is any callable mapping a list of texts to a list of vectors
(pooled, or token-level vectors that get mean-pooled here). It is created
by a loader on first use; a failed load is never retried and every batch
then goes to the fallback embedder. A failed batch falls back alone. Vectors
of the wrong dimension disable the backend like a failed load.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from ragctx.embed.base import BaseEmbedder
from ragctx.embed.fallback import FallbackEmbedder
from ragctx.embed.similarity import l2_normalize, mean_pool
from ragctx.exceptions import BackendUnavailableError, EmbeddingError

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = ["Backend", "NeuralEmbedder"]

logger = logging.getLogger(__name__)

Backend = Any  # Callable[[list[str]], Sequence[vector]]


class NeuralEmbedder(BaseEmbedder):
    """Embedding provider backed by a feature-extraction model.

    Usage::

        embedder = NeuralEmbedder(
            loader=lambda: load_chromadb_backend(),
            dimension=384,
            batch_size=10,
        )
        vectors = embedder.generate_embeddings(["hello", "hello world"])
    """

    def __init__(
        self,
        loader: Callable[[], Backend],
        dimension: int = 384,
        batch_size: int = 10,
        fallback: BaseEmbedder | None = None,
        name: str = "neural",
    ) -> None:
        if batch_size < 1:
            raise EmbeddingError(f"batch_size must be >= 1, got {batch_size}")

        self._loader = loader
        self._dimension = dimension
        self._batch_size = batch_size
        self._fallback = fallback or FallbackEmbedder(dimension)
        self._name = name

        self._backend: Backend | None = None
        self._initialized = False
        self._init_lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_available(self) -> bool:
        """Whether the backend loaded. Triggers the load on first access."""
        return self._get_backend() is not None

    def _get_backend(self) -> Backend | None:
        """Load the backend exactly once; later callers reuse the outcome."""
        if self._initialized:
            return self._backend

        with self._init_lock:
            if self._initialized:
                return self._backend
            try:
                self._backend = self._loader()
                logger.info("Embedding backend %s loaded", self._name)
            except Exception as e:
                logger.warning(
                    "Embedding backend %s unavailable: %s; using fallback embeddings",
                    self._name,
                    e,
                )
                self._backend = None
            finally:
                self._initialized = True

        return self._backend

    def _disable(self, reason: BackendUnavailableError) -> None:
        with self._init_lock:
            if self._backend is None:
                return
            self._backend = None
        logger.warning("%s; using fallback embeddings", reason)

    def generate_embeddings(self, texts: list[str]) -> list[list[float]]:
        """Embed texts batch by batch.

        Never raises: an unavailable backend or a failing batch is served by
        the fallback embedder. A backend whose vectors do not have
        ``dimension`` components is dropped for good.
        """
        if not texts:
            return []

        if self._get_backend() is None:
            return self._fallback.generate_embeddings(texts)

        vectors: list[list[float]] = []
        for batch_start in range(0, len(texts), self._batch_size):
            batch = texts[batch_start : batch_start + self._batch_size]
            vectors.extend(self._embed_batch(batch, batch_start))

        logger.debug("Embedded %d texts via %s", len(vectors), self._name)
        return vectors

    def _embed_batch(self, batch: list[str], offset: int) -> list[list[float]]:
        backend = self._backend
        if backend is None:
            return self._fallback.generate_embeddings(batch)

        try:
            raw = list(backend(batch))
            if len(raw) != len(batch):
                raise EmbeddingError(
                    f"backend returned {len(raw)} embeddings for {len(batch)} inputs"
                )
            vectors = [l2_normalize(mean_pool(output)) for output in raw]
            for vector in vectors:
                if len(vector) != self._dimension:
                    raise BackendUnavailableError(
                        f"Embedding backend {self._name} returned {len(vector)}-dimensional "
                        f"vectors, expected {self._dimension}"
                    )
            return vectors
        except BackendUnavailableError as e:
            self._disable(e)
        except Exception as e:
            logger.warning(
                "Embedding batch %d-%d failed, using fallback: %s",
                offset,
                offset + len(batch) - 1,
                e,
            )
        return self._fallback.generate_embeddings(batch)

    @property
    def dimension(self) -> int:
        return self._dimension
