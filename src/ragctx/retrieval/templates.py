"""Jinja2 rendering of retrieved context into a conversation message.

Loads templates from built-in and user-override directories. User
overrides in .ragctx/templates/ take precedence over built-in templates in
src/ragctx/templates/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import jinja2

from ragctx.exceptions import RetrievalError

if TYPE_CHECKING:
    from ragctx.types import RetrievalContext

__all__ = [
    "CONTEXT_TEMPLATE",
    "MAX_CHUNK_CHARS",
    "ContextFormatter",
    "ContextGroup",
    "truncate_content",
]

logger = logging.getLogger(__name__)

CONTEXT_TEMPLATE = "context.md.j2"

# Longer chunk bodies are cut to this many characters plus "...".
MAX_CHUNK_CHARS = 1500


@dataclass(frozen=True)
class ContextEntry:
    content: str
    subsection: str | None = None


@dataclass
class ContextGroup:
    """Chunks sharing one section heading, in retrieval order."""

    section: str
    entries: list[ContextEntry] = field(default_factory=list)


def truncate_content(content: str, limit: int = MAX_CHUNK_CHARS) -> str:
    """Strip and cut chunk text to ``limit`` characters, marking the cut."""
    text = content.strip()
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def group_by_section(context: RetrievalContext) -> list[ContextGroup]:
    """Group chunks by section name, sections in first-seen order."""
    groups: dict[str, ContextGroup] = {}
    for chunk in context.chunks:
        group = groups.setdefault(chunk.section, ContextGroup(section=chunk.section))
        group.entries.append(
            ContextEntry(content=truncate_content(chunk.content), subsection=chunk.subsection)
        )
    return list(groups.values())


class ContextFormatter:
    """Renders a RetrievalContext as a markdown context block.

    Template search order:
      1. .ragctx/templates/ (user overrides, optional)
      2. src/ragctx/templates/ (built-in, always present)

    Args:
        template_dir: Optional user override directory.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        from importlib.resources import files

        search_paths: list[str] = []
        if template_dir is not None and template_dir.is_dir():
            search_paths.append(str(template_dir))
            logger.info("User template overrides enabled: %s", template_dir)

        builtin_dir = Path(str(files("ragctx") / "templates"))
        if not builtin_dir.is_dir():
            logger.debug("Expected template dir at: %s", builtin_dir)
            raise RetrievalError(
                "Built-in template directory not found; installation may be corrupted"
            )
        search_paths.append(str(builtin_dir))

        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(search_paths),
            autoescape=False,
            undefined=jinja2.StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def format(self, context: RetrievalContext) -> str:
        """Render the context block for a retrieval result.

        Raises:
            RetrievalError: If the template is missing or fails to render.
        """
        try:
            template = self._env.get_template(CONTEXT_TEMPLATE)
        except jinja2.TemplateNotFound as e:
            raise RetrievalError(f"Template not found: {CONTEXT_TEMPLATE}") from e

        try:
            return template.render(
                sources=list(context.source_documents),
                groups=group_by_section(context),
                chunk_count=len(context.chunks),
                total_tokens=context.total_tokens,
            )
        except jinja2.TemplateError as e:
            raise RetrievalError(f"Failed to render template {CONTEXT_TEMPLATE}: {e}") from e
