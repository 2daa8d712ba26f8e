"""Tests for ragctx.registry module."""

from __future__ import annotations

import pytest

from ragctx.config import RagctxConfig
from ragctx.embed.fallback import FallbackEmbedder
from ragctx.embed.neural import NeuralEmbedder
from ragctx.exceptions import PluginError
from ragctx.registry import ProviderRegistry, default_registry


class TestProviderRegistry:
    def test_register_and_create(self):
        registry = ProviderRegistry()
        registry.register("fallback", lambda cfg: FallbackEmbedder(8))

        embedder = registry.create("fallback", RagctxConfig())
        assert isinstance(embedder, FallbackEmbedder)
        assert embedder.dimension == 8

    def test_factory_receives_config(self):
        registry = ProviderRegistry()
        seen = []
        registry.register("spy", lambda cfg: seen.append(cfg) or FallbackEmbedder(8))
        config = RagctxConfig()
        registry.create("spy", config)
        assert seen == [config]

    def test_duplicate_registration(self):
        registry = ProviderRegistry()
        registry.register("x", lambda cfg: FallbackEmbedder(8))
        with pytest.raises(PluginError, match="already registered"):
            registry.register("x", lambda cfg: FallbackEmbedder(8))

    def test_unknown_provider_lists_available(self):
        registry = ProviderRegistry()
        registry.register("fallback", lambda cfg: FallbackEmbedder(8))
        with pytest.raises(PluginError, match="Available: \\['fallback'\\]"):
            registry.create("openai", RagctxConfig())

    def test_names_sorted(self):
        registry = ProviderRegistry()
        registry.register("b", lambda cfg: FallbackEmbedder(8))
        registry.register("a", lambda cfg: FallbackEmbedder(8))
        assert registry.names() == ["a", "b"]


class TestDefaultRegistry:
    def test_builtin_embedding_providers(self):
        assert default_registry.names() == ["chromadb", "fallback", "ollama"]

    def test_fallback_uses_configured_dimensions(self):
        config = RagctxConfig()
        config.embedding.dimensions = 64
        embedder = default_registry.create("fallback", config)
        assert isinstance(embedder, FallbackEmbedder)
        assert embedder.dimension == 64

    def test_neural_providers_load_lazily(self):
        embedder = default_registry.create("chromadb", RagctxConfig())
        assert isinstance(embedder, NeuralEmbedder)
        assert embedder.name == "chromadb"
        assert embedder.dimension == 384
