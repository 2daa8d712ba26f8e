"""Section-based markdown chunker with character-estimated token counts.

Splits document text into Chunk objects following its heading structure:
- Every ``#``..``######`` heading opens a new section
- Headings inside fenced code blocks are ignored
- Oversized sections are split on paragraph boundaries
- Consecutive parts of a split section share a trailing-sentence overlap
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import PurePath
from typing import TYPE_CHECKING, ClassVar

from ragctx.chunk.base import BaseChunker
from ragctx.exceptions import ChunkError
from ragctx.types import Chunk, ChunkedDocument, ChunkMetadata, ChunkType, DocumentMetadata

if TYPE_CHECKING:
    from ragctx.config import ChunkConfig

__all__ = [
    "DEFAULT_TITLE",
    "INTRODUCTION_SECTION",
    "MarkdownChunker",
    "classify_content",
    "estimate_tokens",
    "extract_repository_path",
    "extract_title",
    "make_doc_id",
]

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Document"
INTRODUCTION_SECTION = "Introduction"

# Heading pattern: "# Heading" through "###### Heading"
_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")

# Fenced code block delimiter: ``` or ~~~ with optional language
_FENCE_RE = re.compile(r"^\s*(`{3,}|~{3,})")

# Setext title at the very start of a document: "Title\n====="
_SETEXT_TITLE_RE = re.compile(r"(.+)\n=+[ \t]*(?:\n|$)")

_REPOSITORY_PATH_RE = re.compile(r"\*\*Repository Path\*\*:\s*`([^`]+)`")

# Blank-line paragraph boundary
_PARAGRAPH_RE = re.compile(r"\n\s*\n")

# Sentence boundary used for overlap extraction
_SENTENCE_RE = re.compile(r"[.!?]+")

# --- Content classification patterns ---

_TABLE_ROW_RE = re.compile(r"\|.*\|")
_FENCE_MARK_RE = re.compile(r"```|~~~")
_LIST_ITEM_RE = re.compile(r"^\s*(?:[-*+]|\d+\.)\s+", re.MULTILINE)
_HEADER_START_RE = re.compile(r"^#{1,6}\s+")


def estimate_tokens(text: str) -> int:
    """Estimate language-model tokens as one token per four characters."""
    return math.ceil(len(text) / 4)


def classify_content(content: str) -> str:
    """Classify chunk content by pattern precedence.

    table > code > list > header > content. Only content that opens with a
    pipe row counts as a table.
    """
    if _TABLE_ROW_RE.match(content):
        return ChunkType.TABLE
    if _FENCE_MARK_RE.search(content):
        return ChunkType.CODE
    if _LIST_ITEM_RE.search(content):
        return ChunkType.LIST
    if _HEADER_START_RE.match(content):
        return ChunkType.HEADER
    return ChunkType.CONTENT


def extract_title(content: str) -> str | None:
    """Find the first top-level heading, or a setext title on line one."""
    in_fence = False
    for line in content.split("\n"):
        if _FENCE_RE.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        match = _HEADING_RE.match(line)
        if match and len(match.group(1)) == 1:
            return match.group(2).strip()

    setext = _SETEXT_TITLE_RE.match(content)
    if setext and setext.group(1).strip():
        return setext.group(1).strip()
    return None


def extract_repository_path(content: str) -> str | None:
    """Extract the ``**Repository Path**: `...` `` value of an analysis report."""
    match = _REPOSITORY_PATH_RE.search(content)
    return match.group(1) if match else None


def make_doc_id(source_file: str) -> str:
    """Generate a document ID from a source file name.

    Includes the file extension to avoid collisions between same-name files
    of different types (e.g., report.md vs report.txt). The result never
    contains ":", the separator of chunk IDs.
    """
    path = PurePath(source_file)
    stem = path.stem.lower().replace(" ", "_").replace("-", "_").replace(":", "_")
    suffix = path.suffix.lstrip(".").lower().replace(":", "_")
    if not stem:
        return "document"
    return f"{stem}_{suffix}" if suffix else stem


@dataclass
class _Section:
    """A heading and the body lines that follow it."""

    title: str
    level: int
    start_line: int
    end_line: int = 0
    lines: list[str] = field(default_factory=list)

    @property
    def body(self) -> str:
        return "\n".join(self.lines).strip()


def _extract_sections(content: str) -> list[_Section]:
    """Split text into heading-delimited sections.

    Line numbers are 1-based. Sections with a blank body are dropped.
    """
    lines = content.split("\n")
    sections: list[_Section] = []
    current = _Section(title=INTRODUCTION_SECTION, level=0, start_line=1)
    in_fence = False

    for i, line in enumerate(lines, start=1):
        if _FENCE_RE.match(line):
            in_fence = not in_fence
            current.lines.append(line)
            continue

        match = None if in_fence else _HEADING_RE.match(line)
        if match:
            if current.body:
                current.end_line = i - 1
                sections.append(current)
            current = _Section(
                title=match.group(2).strip(),
                level=len(match.group(1)),
                start_line=i,
            )
        else:
            current.lines.append(line)

    if current.body:
        current.end_line = len(lines)
        sections.append(current)

    return sections


def _recursive_split(text: str, max_tokens: int, separators: list[str]) -> list[str]:
    """Recursively split text to fit within max_tokens.

    Tries each separator in order, falling back to the next if pieces
    are still too large.
    """
    if estimate_tokens(text) <= max_tokens:
        return [text]

    if not separators:
        return _hard_split(text, max_tokens)

    separator = separators[0]
    remaining_separators = separators[1:]

    parts = [p for p in text.split(separator) if p.strip()]
    if len(parts) <= 1:
        return _recursive_split(text, max_tokens, remaining_separators)

    result: list[str] = []
    current = ""

    for part in parts:
        candidate = current + separator + part if current else part
        if estimate_tokens(candidate) <= max_tokens:
            current = candidate
            continue
        if current:
            result.append(current)
        if estimate_tokens(part) > max_tokens:
            result.extend(_recursive_split(part, max_tokens, remaining_separators))
            current = ""
        else:
            current = part

    if current:
        result.append(current)

    return result


def _hard_split(text: str, max_tokens: int) -> list[str]:
    """Cut text into fixed-size character windows when no separator helps."""
    width = max_tokens * 4
    return [text[i : i + width] for i in range(0, len(text), width)]


def _get_overlap(text: str, overlap_tokens: int) -> str:
    """Collect trailing sentences of ``text`` up to ``overlap_tokens``."""
    collected: list[str] = []
    tokens = 0

    for sentence in reversed(_SENTENCE_RE.split(text)):
        if tokens >= overlap_tokens:
            break
        sentence = sentence.strip()
        if not sentence:
            continue
        sentence_tokens = estimate_tokens(sentence)
        if tokens + sentence_tokens > overlap_tokens:
            break
        collected.insert(0, sentence)
        tokens += sentence_tokens

    return "".join(f"{s}. " for s in collected)


class MarkdownChunker(BaseChunker):
    """Section-based markdown chunker.

    Each heading starts a section. A section that fits the token budget
    becomes a single chunk; a larger one is split on paragraphs with a
    sentence overlap between consecutive parts.
    """

    # Separators for paragraphs that alone exceed the budget
    SEPARATORS: ClassVar[list[str]] = ["\n", " "]

    def __init__(self, config: ChunkConfig | None = None) -> None:
        if config is None:
            from ragctx.config import ChunkConfig

            config = ChunkConfig()
        self.max_tokens = config.max_tokens
        self.overlap_tokens = config.overlap_tokens

    def chunk_document(
        self,
        content: str,
        source_file: str,
        title: str | None = None,
    ) -> ChunkedDocument:
        """Split document text into a ChunkedDocument.

        Args:
            content: Raw document text.
            source_file: File name used for the document ID and chunk metadata.
            title: Explicit title; inferred from the first heading if omitted.

        Returns:
            ChunkedDocument with chunks in document order.

        Raises:
            ChunkError: If chunking fails.
        """
        try:
            return self._do_chunk(content, source_file, title)
        except ChunkError:
            raise
        except Exception as e:
            logger.error("Failed to chunk document %s: %s", source_file, e)
            raise ChunkError(f"Failed to chunk document {source_file}: {e}") from e

    def _do_chunk(self, content: str, source_file: str, title: str | None) -> ChunkedDocument:
        """Internal chunking implementation."""
        text = content.replace("\r\n", "\n")

        doc_id = make_doc_id(source_file)
        chunks: list[Chunk] = []
        for section_index, section in enumerate(_extract_sections(text)):
            chunks.extend(
                self._chunk_section(section, section_index, doc_id, source_file, len(chunks))
            )

        document = ChunkedDocument(
            id=doc_id,
            title=title or extract_title(text) or DEFAULT_TITLE,
            source_file=source_file,
            total_chunks=len(chunks),
            chunks=tuple(chunks),
            created_at=int(datetime.now(UTC).timestamp() * 1000),
            metadata=DocumentMetadata(
                total_size=len(content),
                repository_path=extract_repository_path(text),
            ),
        )

        logger.info(
            "Chunked %s into %d chunks (max_tokens=%d, overlap=%d)",
            source_file,
            len(chunks),
            self.max_tokens,
            self.overlap_tokens,
        )
        return document

    def _chunk_section(
        self,
        section: _Section,
        section_index: int,
        doc_id: str,
        source_file: str,
        first_index: int,
    ) -> list[Chunk]:
        """Turn one section into one chunk, or several overlapping parts."""
        parts = self._split_body(section.body)

        if len(parts) == 1:
            return [
                self._make_chunk(
                    parts[0],
                    chunk_id=f"{doc_id}:{section_index}",
                    section=section,
                    source_file=source_file,
                    chunk_index=first_index,
                )
            ]

        return [
            self._make_chunk(
                part,
                chunk_id=f"{doc_id}:{section_index}:{part_index}",
                section=section,
                source_file=source_file,
                chunk_index=first_index + part_index,
                subsection=f"Part {part_index + 1}",
            )
            for part_index, part in enumerate(parts)
        ]

    def _split_body(self, body: str) -> list[str]:
        """Split a section body into budget-sized parts with overlap."""
        if estimate_tokens(body) <= self.max_tokens:
            return [body]

        # Oversized paragraphs leave room for the overlap prefix
        split_budget = max(self.max_tokens - self.overlap_tokens, 1)
        pieces: list[str] = []
        for paragraph in _PARAGRAPH_RE.split(body):
            if not paragraph.strip():
                continue
            if estimate_tokens(paragraph) > self.max_tokens:
                pieces.extend(_recursive_split(paragraph, split_budget, self.SEPARATORS))
            else:
                pieces.append(paragraph)

        parts: list[str] = []
        current = ""
        for piece in pieces:
            candidate = f"{current}\n\n{piece}" if current else piece
            if current and estimate_tokens(candidate) > self.max_tokens:
                parts.append(current.strip())
                current = _get_overlap(current, self.overlap_tokens) + piece
            else:
                current = candidate

        if current.strip():
            parts.append(current.strip())

        return parts

    def _make_chunk(
        self,
        text: str,
        *,
        chunk_id: str,
        section: _Section,
        source_file: str,
        chunk_index: int,
        subsection: str | None = None,
    ) -> Chunk:
        content = text.strip()
        return Chunk(
            id=chunk_id,
            content=content,
            section=section.title,
            tokens=estimate_tokens(content),
            subsection=subsection,
            metadata=ChunkMetadata(
                source_file=source_file,
                chunk_index=chunk_index,
                start_line=section.start_line,
                end_line=section.end_line,
                type=classify_content(content),
            ),
        )
