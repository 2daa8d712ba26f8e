"""Custom exception hierarchy for ragctx."""

__all__ = [
    "BackendUnavailableError",
    "ChunkError",
    "ConfigError",
    "EmbeddingError",
    "PluginError",
    "ProjectError",
    "RagctxError",
    "RetrievalError",
    "StoreError",
]


class RagctxError(Exception):
    """Base exception for all ragctx errors."""


class ConfigError(RagctxError):
    """Raised when configuration loading or validation fails."""


class ProjectError(RagctxError):
    """Raised when project initialization or discovery fails."""


class ChunkError(RagctxError):
    """Raised when chunking operations fail."""


class EmbeddingError(RagctxError):
    """Raised when embedding generation fails."""


class BackendUnavailableError(EmbeddingError):
    """Raised when the neural embedding backend cannot be loaded."""


class StoreError(RagctxError):
    """Raised when document store operations fail."""


class RetrievalError(RagctxError):
    """Raised when context retrieval fails."""


class PluginError(RagctxError):
    """Raised when provider lookup or registration fails."""
