"""Abstract base class for chunking strategies."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ragctx.types import ChunkedDocument

__all__ = ["BaseChunker"]

logger = logging.getLogger(__name__)


class BaseChunker(ABC):
    """Base class for all chunking strategies.

    Subclasses split raw document text into a ``ChunkedDocument``.
    """

    @abstractmethod
    def chunk_document(
        self,
        content: str,
        source_file: str,
        title: str | None = None,
    ) -> ChunkedDocument:
        """Split document text into chunks.

        Args:
            content: Raw document text (markdown).
            source_file: Name of the file the text came from.
            title: Optional explicit title; inferred when omitted.

        Returns:
            The chunked document with all chunks in document order.

        Raises:
            ChunkError: If chunking fails.
        """
