"""Configuration system for ragctx.

Manages project configuration via .ragctx/config.toml with typed dataclasses
and sensible defaults for all values.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

import tomli_w

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from ragctx.exceptions import ConfigError

if TYPE_CHECKING:
    from pathlib import Path

_T = TypeVar("_T")

__all__ = [
    "ChunkConfig",
    "EmbeddingConfig",
    "ProjectConfig",
    "RagctxConfig",
    "RetrievalConfig",
    "StoreConfig",
    "default_config",
    "load_config",
    "save_config",
]

logger = logging.getLogger(__name__)


@dataclass
class ProjectConfig:
    """[project] section."""

    name: str = ""


@dataclass
class ChunkConfig:
    """[chunk] section."""

    max_tokens: int = 1000
    overlap_tokens: int = 100

    def __post_init__(self) -> None:
        if self.max_tokens < 1:
            raise ConfigError(f"chunk.max_tokens must be >= 1, got {self.max_tokens}")
        if self.overlap_tokens < 0:
            raise ConfigError(f"chunk.overlap_tokens must be >= 0, got {self.overlap_tokens}")


@dataclass
class EmbeddingConfig:
    """[embedding] section."""

    provider: str = "chromadb"
    model: str = "all-MiniLM-L6-v2"
    dimensions: int = 384
    batch_size: int = 10
    base_url: str = ""

    def __post_init__(self) -> None:
        if self.dimensions < 1:
            raise ConfigError(f"embedding.dimensions must be >= 1, got {self.dimensions}")
        if self.batch_size < 1:
            raise ConfigError(f"embedding.batch_size must be >= 1, got {self.batch_size}")


@dataclass(frozen=True)
class RetrievalConfig:
    """[retrieval] section. Immutable once a service is built from it."""

    max_context_tokens: int = 8000
    max_chunks: int = 10
    min_similarity: float = 0.1
    enable_hybrid_search: bool = True
    max_context_messages: int = 5

    def __post_init__(self) -> None:
        if self.max_context_tokens <= 0:
            raise ConfigError(
                f"retrieval.max_context_tokens must be > 0, got {self.max_context_tokens}"
            )
        if self.max_chunks <= 0:
            raise ConfigError(f"retrieval.max_chunks must be > 0, got {self.max_chunks}")
        if not -1.0 <= self.min_similarity <= 1.0:
            raise ConfigError(
                f"retrieval.min_similarity must be within [-1, 1], got {self.min_similarity}"
            )
        if self.max_context_messages < 1:
            raise ConfigError(
                f"retrieval.max_context_messages must be >= 1, got {self.max_context_messages}"
            )


@dataclass
class StoreConfig:
    """[store] section."""

    documents_file: str = "documents.json"


@dataclass
class RagctxConfig:
    """Root configuration combining all sections."""

    project: ProjectConfig = field(default_factory=ProjectConfig)
    chunk: ChunkConfig = field(default_factory=ChunkConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    store: StoreConfig = field(default_factory=StoreConfig)


_SECTIONS: dict[str, type] = {
    "project": ProjectConfig,
    "chunk": ChunkConfig,
    "embedding": EmbeddingConfig,
    "retrieval": RetrievalConfig,
    "store": StoreConfig,
}


def default_config() -> RagctxConfig:
    """Return a config with all default values."""
    return RagctxConfig()


def _section_to_dict(obj: object) -> dict[str, object]:
    """Convert a dataclass instance to a dict for TOML serialization."""
    return dict(vars(obj))


def _config_to_dict(config: RagctxConfig) -> dict[str, object]:
    """Convert RagctxConfig to a nested dict suitable for TOML serialization."""
    return {name: _section_to_dict(getattr(config, name)) for name in _SECTIONS}


def save_config(config: RagctxConfig, path: Path) -> None:
    """Save configuration to a TOML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = _config_to_dict(config)
    try:
        with path.open("wb") as f:
            tomli_w.dump(data, f)
        logger.info("Saved config to %s", path)
    except OSError as e:
        logger.error("Failed to save config to %s: %s", path, e)
        raise ConfigError(f"Failed to save config to {path}: {e}") from e


def _load_section(cls: type[_T], data: dict[str, object]) -> _T:
    """Load a dataclass section from a dict, ignoring unknown keys."""
    known_fields = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
    filtered = {k: v for k, v in data.items() if k in known_fields}
    try:
        return cls(**filtered)
    except TypeError as e:
        raise ConfigError(f"Invalid values in [{cls.__name__}]: {e}") from e


def load_config(path: Path) -> RagctxConfig:
    """Load configuration from a TOML file.

    Missing sections or keys get default values.
    """
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        raw = path.read_bytes()
        data = tomllib.loads(raw.decode("utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.error("Failed to load config from %s: %s", path, e)
        raise ConfigError(f"Failed to load config from {path}: {e}") from e

    config = RagctxConfig()
    for name, cls in _SECTIONS.items():
        if name in data:
            setattr(config, name, _load_section(cls, data[name]))

    logger.info("Loaded config from %s", path)
    return config
