"""Project manager for ragctx.

Handles project initialization, status reporting, project root discovery,
and wiring the retrieval service from a project's configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ragctx.chunk.markdown import MarkdownChunker
from ragctx.config import RagctxConfig, default_config, load_config, save_config
from ragctx.embed.service import EmbeddingService
from ragctx.exceptions import ProjectError, StoreError
from ragctx.registry import default_registry
from ragctx.retrieval.service import RetrievalService
from ragctx.retrieval.templates import ContextFormatter
from ragctx.store.json_store import JsonDocumentStore

__all__ = [
    "CONFIG_FILE",
    "RAG_DIR",
    "TEMPLATES_DIR",
    "ProjectManager",
    "ProjectStatus",
]

logger = logging.getLogger(__name__)

RAG_DIR = ".ragctx"
CONFIG_FILE = "config.toml"
TEMPLATES_DIR = "templates"


@dataclass
class ProjectStatus:
    """Summary of the current project state."""

    initialized: bool
    root: Path
    document_count: int
    chunk_count: int
    config: RagctxConfig | None


class ProjectManager:
    """Manages ragctx project lifecycle."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = root or Path.cwd()

    @property
    def rag_dir(self) -> Path:
        return self.root / RAG_DIR

    @property
    def config_path(self) -> Path:
        return self.rag_dir / CONFIG_FILE

    @property
    def is_initialized(self) -> bool:
        return self.rag_dir.is_dir() and self.config_path.exists()

    def documents_path(self, config: RagctxConfig) -> Path:
        return self.rag_dir / config.store.documents_file

    def init(self, name: str = "", provider: str = "") -> Path:
        """Initialize a new ragctx project.

        Creates the .ragctx/ directory and a default config. Safe to call on
        an already-initialized project (idempotent).

        Returns the .ragctx/ directory path.
        """
        self.rag_dir.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            config = load_config(self.config_path)
            logger.info("Existing config found at %s", self.config_path)
        else:
            config = default_config()

        if name:
            config.project.name = name
        elif not config.project.name:
            config.project.name = self.root.name
        if provider:
            config.embedding.provider = provider

        save_config(config, self.config_path)
        logger.info("Initialized ragctx project at %s", self.rag_dir)
        return self.rag_dir

    def load_config(self) -> RagctxConfig:
        if not self.is_initialized:
            raise ProjectError(f"No ragctx project at {self.root}")
        return load_config(self.config_path)

    def status(self) -> ProjectStatus:
        """Get current project status."""
        if not self.is_initialized:
            return ProjectStatus(
                initialized=False,
                root=self.root,
                document_count=0,
                chunk_count=0,
                config=None,
            )

        config = load_config(self.config_path)
        try:
            documents = JsonDocumentStore(self.documents_path(config)).list_all()
        except StoreError as e:
            logger.warning("Could not read documents: %s", e)
            documents = []

        return ProjectStatus(
            initialized=True,
            root=self.root,
            document_count=len(documents),
            chunk_count=sum(d.total_chunks for d in documents),
            config=config,
        )

    def build_service(self, config: RagctxConfig | None = None) -> RetrievalService:
        """Wire a RetrievalService from the project's configuration.

        Raises:
            ProjectError: If the project is not initialized.
            PluginError: If the configured embedding provider is unknown.
        """
        config = config or self.load_config()
        embedder = default_registry.create(config.embedding.provider, config)
        return RetrievalService(
            store=JsonDocumentStore(self.documents_path(config)),
            embeddings=EmbeddingService(embedder),
            config=config.retrieval,
            chunker=MarkdownChunker(config.chunk),
            formatter=ContextFormatter(self.rag_dir / TEMPLATES_DIR),
        )

    @staticmethod
    def find_project_root(start: Path | None = None) -> Path | None:
        """Walk up from start directory to find a .ragctx/ directory.

        Returns the project root (parent of .ragctx/) or None if not found.
        """
        current = (start or Path.cwd()).resolve()
        while True:
            if (current / RAG_DIR).is_dir():
                return current
            parent = current.parent
            if parent == current:
                return None
            current = parent
