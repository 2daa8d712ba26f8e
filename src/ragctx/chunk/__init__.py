"""Chunking engine: section-based markdown splitting and lexical ranking."""

from ragctx.chunk.base import BaseChunker
from ragctx.chunk.markdown import MarkdownChunker, estimate_tokens
from ragctx.chunk.relevance import filter_relevant_chunks

__all__ = ["BaseChunker", "MarkdownChunker", "estimate_tokens", "filter_relevant_chunks"]
