"""Embedding engine: provider interface, neural and fallback embedders."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ragctx.embed.base import BaseEmbedder
from ragctx.embed.chromadb_embed import load_chromadb_backend
from ragctx.embed.fallback import FallbackEmbedder
from ragctx.embed.neural import NeuralEmbedder
from ragctx.embed.ollama import load_ollama_backend
from ragctx.embed.service import EmbeddingService
from ragctx.embed.similarity import cosine_similarity
from ragctx.registry import default_registry

if TYPE_CHECKING:
    from ragctx.config import RagctxConfig

__all__ = [
    "BaseEmbedder",
    "EmbeddingService",
    "FallbackEmbedder",
    "NeuralEmbedder",
    "cosine_similarity",
]


def _chromadb_factory(cfg: RagctxConfig) -> NeuralEmbedder:
    return NeuralEmbedder(
        loader=lambda: load_chromadb_backend(cfg.embedding.model),
        dimension=cfg.embedding.dimensions,
        batch_size=cfg.embedding.batch_size,
        name="chromadb",
    )


def _ollama_factory(cfg: RagctxConfig) -> NeuralEmbedder:
    return NeuralEmbedder(
        loader=lambda: load_ollama_backend(cfg.embedding),
        dimension=cfg.embedding.dimensions,
        batch_size=cfg.embedding.batch_size,
        name="ollama",
    )


# Register built-in embedding providers
default_registry.register("chromadb", _chromadb_factory)
default_registry.register("ollama", _ollama_factory)
default_registry.register("fallback", lambda cfg: FallbackEmbedder(cfg.embedding.dimensions))
