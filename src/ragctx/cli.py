"""CLI interface for ragctx.

Typer-based command-line interface with Rich output formatting.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from ragctx import __version__
from ragctx.exceptions import RagctxError
from ragctx.project import ProjectManager
from ragctx.retrieval.service import RetrievalService

__all__ = ["app"]

app = typer.Typer(
    name="ragctx",
    help="Retrieves analysis-document context for assistant conversations.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """ragctx command group."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _open_service() -> RetrievalService:
    """Build the retrieval service for the project in the current directory."""
    pm = ProjectManager()
    if not pm.is_initialized:
        console.print(
            "[yellow]No ragctx project found.[/yellow] Run [bold]ragctx init[/bold] first."
        )
        raise typer.Exit(code=1)

    try:
        return pm.build_service()
    except RagctxError as e:
        console.print(f"[red]Failed to initialize retrieval service:[/red] {e}")
        raise typer.Exit(code=1) from e


@app.command()
def version() -> None:
    """Show ragctx version."""
    console.print(f"ragctx {__version__}")


@app.command()
def init(
    name: Annotated[
        str,
        typer.Option("--name", "-n", help="Project name"),
    ] = "",
    provider: Annotated[
        str,
        typer.Option("--provider", "-p", help="Embedding provider (chromadb, ollama, fallback)"),
    ] = "",
) -> None:
    """Initialize a new ragctx project in the current directory."""
    pm = ProjectManager()
    try:
        rag_dir = pm.init(name=name, provider=provider)
    except (RagctxError, OSError) as e:
        console.print(f"[red]Failed to initialize project:[/red] {e}")
        raise typer.Exit(code=1) from e

    console.print(f"[green]Initialized ragctx project[/green] at {rag_dir}")
    console.print(f"\nCreated:\n  {pm.config_path}")

    console.print("\nNext steps:")
    console.print("  ragctx add <document>    Index an analysis document")
    console.print("  ragctx search <query>    Show the context retrieved for a query")


@app.command()
def status() -> None:
    """Show project status: indexed documents, chunks, config."""
    pm = ProjectManager()
    st = pm.status()

    if not st.initialized:
        console.print(
            "[yellow]No ragctx project found.[/yellow] Run [bold]ragctx init[/bold] first."
        )
        raise typer.Exit(code=1)

    console.print(f"[bold]ragctx project:[/bold] {st.root.name}")
    if st.config:
        console.print(f"  Embedding: {st.config.embedding.provider}")

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("metric", style="dim")
    table.add_column("value", style="bold")
    table.add_row("Documents", str(st.document_count))
    table.add_row("Chunks", str(st.chunk_count))
    console.print(table)

    if st.document_count == 0:
        console.print(
            "\n[dim]No documents indexed yet. Run [bold]ragctx add <file>[/bold] to start.[/dim]"
        )


@app.command()
def add(
    paths: Annotated[
        list[str] | None,
        typer.Argument(help="File path(s) to add"),
    ] = None,
    title: Annotated[
        str,
        typer.Option("--title", "-t", help="Document title (single file only)"),
    ] = "",
) -> None:
    """Add document(s) to the index."""
    logger = logging.getLogger(__name__)

    if not paths:
        console.print(
            "[yellow]No file paths provided.[/yellow] Usage: ragctx add <file> [file ...]"
        )
        raise typer.Exit(code=1)

    service = _open_service()

    added_count = 0
    total_chunks = 0
    for path_str in paths:
        file_path = Path(path_str)
        if not file_path.is_file():
            console.print(f"  [red]File not found:[/red] {path_str}")
            continue

        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            console.print(f"  [red]Cannot read {file_path.name}:[/red] {e}")
            continue

        try:
            document = service.add_document(
                content,
                file_path.name,
                title=title if title and len(paths) == 1 else None,
            )
        except RagctxError as e:
            console.print(f"  [red]Error processing {file_path.name}:[/red] {e}")
            logger.error("Failed to process %s: %s", file_path, e)
            continue

        console.print(
            f"  [green]Added {file_path.name}[/green] as {document.id} "
            f"({document.total_chunks} chunks)"
        )
        added_count += 1
        total_chunks += document.total_chunks

    if added_count > 0:
        console.print(
            f"\n[green]Added {added_count} document(s)[/green] ({total_chunks} chunks total)"
        )


@app.command()
def remove(
    doc_id: Annotated[str, typer.Argument(help="Document ID to remove")],
) -> None:
    """Remove a document from the index."""
    service = _open_service()
    if not service.remove_document(doc_id):
        console.print(f"[yellow]No document with id {doc_id!r}.[/yellow]")
        raise typer.Exit(code=1)
    console.print(f"[green]Removed {doc_id}[/green]")


@app.command(name="list")
def list_cmd() -> None:
    """List indexed documents."""
    service = _open_service()
    documents = service.get_documents()
    if not documents:
        console.print("[dim]No documents indexed.[/dim]")
        return

    table = Table(show_header=True)
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Source")
    table.add_column("Chunks", justify="right")
    table.add_column("Added")
    for document in documents:
        added = datetime.fromtimestamp(document.created_at / 1000, UTC).strftime("%Y-%m-%d %H:%M")
        table.add_row(
            document.id,
            document.title,
            document.source_file,
            str(document.total_chunks),
            added,
        )
    console.print(table)


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="Search query")],
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", "-x", help="Source file to leave out (repeatable)"),
    ] = None,
) -> None:
    """Show the context block retrieved for a query."""
    service = _open_service()
    context = service.find_relevant_context(query, exclude or [])
    if not context.chunks:
        console.print("[dim]No relevant context found.[/dim]")
        return

    console.print(service.format_context(context), markup=False, highlight=False)


@app.command()
def stats() -> None:
    """Show collection statistics."""
    service = _open_service()
    st = service.get_stats()

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("metric", style="dim")
    table.add_column("value", style="bold")
    table.add_row("Documents", str(st.total_documents))
    table.add_row("Chunks", str(st.total_chunks))
    table.add_row("Tokens", str(st.total_tokens))
    table.add_row("Average chunk", f"{st.average_chunk_size} tokens")
    console.print(table)


@app.command()
def clear(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Do not ask for confirmation"),
    ] = False,
) -> None:
    """Remove all documents from the index."""
    if not yes and not typer.confirm("Remove all indexed documents?"):
        raise typer.Exit(code=0)

    service = _open_service()
    removed = service.clear_all_documents()
    console.print(f"[green]Removed {removed} document(s)[/green]")
