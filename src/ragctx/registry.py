"""Embedding provider registry for ragctx.

Maps the ``[embedding] provider`` config string to a factory function.
Example: ``registry.create("chromadb", config)`` -> ``NeuralEmbedder``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ragctx.exceptions import PluginError

if TYPE_CHECKING:
    from collections.abc import Callable

    from ragctx.config import RagctxConfig
    from ragctx.embed.base import BaseEmbedder

__all__ = ["ProviderRegistry", "default_registry"]

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Config-driven factory that maps a provider name to an embedder.

    When ``auto_discover`` is ``True``, the first lookup imports
    ``ragctx.embed`` so the built-in providers register themselves.

    Usage::

        registry = ProviderRegistry()
        registry.register("fallback", lambda cfg: FallbackEmbedder())
        embedder = registry.create("fallback", config)
    """

    def __init__(self, *, auto_discover: bool = False) -> None:
        self._factories: dict[str, Callable[[RagctxConfig], BaseEmbedder]] = {}
        self._auto_discover = auto_discover
        self._discovered = False

    def register(self, name: str, factory: Callable[[RagctxConfig], BaseEmbedder]) -> None:
        """Register an embedding provider factory.

        Raises:
            PluginError: If a provider with the same name already exists.
        """
        if name in self._factories:
            raise PluginError(f"Embedding provider '{name}' already registered")

        self._factories[name] = factory
        logger.debug("Registered embedding provider %s", name)

    def _ensure_discovered(self) -> None:
        if self._discovered or not self._auto_discover:
            return
        self._discovered = True
        import ragctx.embed  # noqa: F401  (registers providers)

    def create(self, name: str, config: RagctxConfig) -> BaseEmbedder:
        """Create the embedder registered under ``name``.

        Raises:
            PluginError: If no provider is registered under ``name``.
        """
        self._ensure_discovered()

        if name not in self._factories:
            raise PluginError(f"Unknown embedding provider '{name}'. Available: {self.names()}")

        logger.info("Creating embedding provider %s", name)
        return self._factories[name](config)

    def names(self) -> list[str]:
        """Registered provider names, sorted."""
        self._ensure_discovered()
        return sorted(self._factories)


default_registry = ProviderRegistry(auto_discover=True)
