"""ChromaDB built-in embedding backend using ONNX runtime.

Uses the all-MiniLM-L6-v2 model via ONNX. Needs no GPU, server or API key.
Model is auto-downloaded on first use (~80MB). The function mean-pools
token vectors and L2-normalizes the result (384 dimensions).
"""

from __future__ import annotations

import logging

from chromadb.utils.embedding_functions import DefaultEmbeddingFunction

from ragctx.exceptions import BackendUnavailableError

__all__ = ["CHROMADB_MODEL", "load_chromadb_backend"]

logger = logging.getLogger(__name__)

CHROMADB_MODEL = "all-MiniLM-L6-v2"


def load_chromadb_backend(model: str = CHROMADB_MODEL) -> DefaultEmbeddingFunction:
    """Create the ONNX embedding function and make sure the model loads.

    Args:
        model: Requested model name; only ``all-MiniLM-L6-v2`` is supported.

    Returns:
        Callable mapping a list of texts to a list of vectors.

    Raises:
        BackendUnavailableError: If the runtime or model cannot be loaded.
    """
    if model and model != CHROMADB_MODEL:
        logger.warning(
            "ChromaDB backend only supports %s, ignoring model=%r",
            CHROMADB_MODEL,
            model,
        )

    try:
        ef = DefaultEmbeddingFunction()
        # The ONNX model is fetched lazily; force it now so a missing model
        # counts as a load failure instead of failing every batch.
        ef(["dimension probe"])
    except Exception as e:
        raise BackendUnavailableError(
            f"Failed to initialize ChromaDB embedding function: {e}"
        ) from e

    logger.info("ChromaDB ONNX backend initialized (%s)", CHROMADB_MODEL)
    return ef
