"""
docrag - CLI entry point
------------------------
Typer commands over DocAssistant. Each command is its own typed function,
so arguments are parsed and validated once, before anything runs.

Usage:
    docrag ingest docs/ notes/changelog.md   # Embed and store every .md/.txt file
    docrag search "routing rules"            # Show the matching segments
    docrag chat "How are orders routed?"     # Answer with Gemini from the matches
    docrag reset                             # Clear the vector store (asks first)
    docrag status                            # Show backend and record count

Exit codes: 0 success, 1 error, 130 ingest interrupted by a signal.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from loguru import logger
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from docrag.config import AppConfig, VectorStoreType, load_config
from docrag.errors import DocRagError, GenerationError, MissingCredentialError
from docrag.models.result import IngestReport, RetrievalResult
from docrag.pipeline import DocAssistant
from docrag.utils.helpers import truncate_text
from docrag.utils.logger import setup_logger
from docrag.utils.signals import CancellationToken

app = typer.Typer(
    name="docrag",
    help="Ingest documentation into a vector store and ask questions about it.",
    add_completion=False,
)
console = Console()

EXIT_INTERRUPTED = 130


# --- Helpers ------------------------------------------------------------------

@contextmanager
def _assistant(ctx: typer.Context) -> Iterator[DocAssistant]:
    """Open a DocAssistant for one command and turn docrag errors into exit code 1."""
    config: AppConfig = ctx.obj
    try:
        with DocAssistant(config) as assistant:
            yield assistant
    except MissingCredentialError as e:
        console.print(str(e), style="red", markup=False, soft_wrap=True)
        raise typer.Exit(1)
    except GenerationError as e:
        console.print(f"\n{e}", style="red", markup=False, soft_wrap=True)
        console.print(
            "Please check that your API key is valid and has access to "
            f"'{config.llm.model_name}'.\n"
            "You can generate a new key at: https://aistudio.google.com/",
            soft_wrap=True,
        )
        raise typer.Exit(1)
    except DocRagError as e:
        logger.debug(f"{type(e).__name__}: {e}")
        console.print(f"[red]{type(e).__name__}:[/red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(1)


def _print_plain(text: str) -> None:
    console.print(text, markup=False, highlight=False, soft_wrap=True)


# --- Global options -----------------------------------------------------------

@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    env_file: Optional[str] = typer.Option(
        None, "--env-file", help="Load settings from this dotenv file instead of ./.env"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Console log level (DEBUG, INFO, WARNING, ...)"
    ),
    log_file: Optional[str] = typer.Option(
        None, "--log-file", help="Also write logs to this rotating file"
    ),
) -> None:
    """
    Ingest documentation into a vector store and ask questions about it.
    """
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)

    try:
        config = load_config(env_file)
    except (ValidationError, FileNotFoundError) as e:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(1)

    setup_logger(log_level or config.log_level, log_file or config.log_file)
    ctx.obj = config


# --- Commands -----------------------------------------------------------------

@app.command()
def ingest(
    ctx: typer.Context,
    paths: list[str] = typer.Argument(..., help="Files or directories to ingest (.md, .txt)"),
) -> None:
    """
    Embed every .md/.txt file under the given paths and store the segments.

    \b
    Per path:
      1. Walk the tree (missing paths are reported, the rest continue)
      2. Split each file into overlapping segments
      3. Embed the segments in one batch per file
      4. Upsert them into the vector store
    """
    console.print("[bold cyan]--- Ingest Mode ---[/bold cyan]")
    token = CancellationToken()

    with _assistant(ctx) as assistant:
        with token.installed():
            report = assistant.ingest(paths, cancel=token)

    _print_report(report)

    if report.cancelled:
        raise typer.Exit(EXIT_INTERRUPTED)
    if not report.ok:
        raise typer.Exit(1)


@app.command()
def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Text to search for"),
    top_k: Optional[int] = typer.Option(None, "--top-k", "-k", min=1, help="Maximum matches"),
    min_score: Optional[float] = typer.Option(
        None, "--min-score", min=0.0, max=1.0, help="Drop matches scoring below this"
    ),
) -> None:
    """Show the stored segments most similar to QUERY (no answer generation)."""
    with _assistant(ctx) as assistant:
        result = assistant.search(query, k=top_k, min_score=min_score)

    _print_matches(result)


@app.command()
def chat(
    ctx: typer.Context,
    question: str = typer.Argument(..., help="Question to answer from the documentation"),
    top_k: Optional[int] = typer.Option(None, "--top-k", "-k", min=1, help="Segments used as context"),
    min_score: Optional[float] = typer.Option(
        None, "--min-score", min=0.0, max=1.0, help="Drop segments scoring below this"
    ),
) -> None:
    """
    Answer QUESTION from the stored documentation.

    \b
    Steps:
      1. Retrieve the best segments above the score threshold
      2. If none qualify, say so without calling the model
      3. Otherwise send context + question to the chat model
    """
    with _assistant(ctx) as assistant:
        response = assistant.chat(question, k=top_k, min_score=min_score)

    if not response.grounded:
        _print_plain(response.answer)
        return

    console.print("\n[bold green]Answer:[/bold green]")
    _print_plain(response.answer)
    if response.generation.sources:
        console.print(
            f"[dim]Sources: {escape(', '.join(response.generation.sources))}[/dim]",
            soft_wrap=True,
        )


@app.command()
def reset(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Delete every stored segment. This cannot be undone."""
    console.print("[bold cyan]--- Reset Mode ---[/bold cyan]")
    config: AppConfig = ctx.obj

    if not yes:
        typer.confirm(
            f"This permanently deletes every record in '{_store_label(config)}'. Continue?",
            default=False,
            abort=True,
        )

    with _assistant(ctx) as assistant:
        removed = assistant.reset()

    console.print(
        f"[green]Table '{escape(_store_label(config))}' cleared[/green] ({removed} records removed).",
        soft_wrap=True,
    )


@app.command()
def status(ctx: typer.Context) -> None:
    """Show the configured vector store and how many records it holds."""
    config: AppConfig = ctx.obj

    with _assistant(ctx) as assistant:
        records = assistant.count()

    table = Table(box=box.SIMPLE, show_header=False)
    table.add_row("Backend", config.vector_store.store_type.value)
    table.add_row("Location", escape(_store_label(config)))
    table.add_row("Embedding", f"{config.embedding.model_name} ({config.embedding.dimension}-d)")
    table.add_row("Chat model", f"{config.llm.provider.value}/{config.llm.model_name}")
    table.add_row("Records", f"{records:,}")
    console.print(table)


# --- Rendering ----------------------------------------------------------------

def _store_label(config: AppConfig) -> str:
    store = config.vector_store
    if store.store_type == VectorStoreType.MEMORY:
        return store.persist_path or "memory"
    return store.table


def _print_report(report: IngestReport) -> None:
    table = Table("Files", "Skipped", "Failed", "Segments stored", box=box.SIMPLE, header_style="bold dim")
    table.add_row(
        str(report.files_processed),
        str(report.files_skipped),
        f"[red]{report.files_failed}[/red]" if report.files_failed else "0",
        str(report.segments_stored),
    )
    console.print(table)

    for path in report.invalid_paths:
        console.print(f"[red]Path does not exist:[/red] {escape(path)}", soft_wrap=True)
    if report.files_failed:
        for error in report.errors:
            if not error.startswith("Path does not exist"):
                console.print(error, style="yellow", markup=False, soft_wrap=True)
    if report.cancelled:
        console.print("[yellow]Interrupted: remaining files were not ingested.[/yellow]")


def _print_matches(result: RetrievalResult) -> None:
    if not result.documents:
        console.print(
            f"[yellow]No segments scored at or above {result.min_score:.2f}.[/yellow]"
        )
        return

    table = Table("No.", "Score", "Source", "Text", box=box.SIMPLE, header_style="bold dim")
    for doc in result.documents:
        table.add_row(
            str(doc.rank + 1),
            f"{doc.score:.3f}",
            escape(doc.chunk.metadata.source),
            escape(truncate_text(doc.chunk.content, 200)),
        )
    console.print(Panel(table, title=f"[bold]Matches for[/bold] {escape(repr(result.query_used))}", expand=True))


# --- Entry Point --------------------------------------------------------------

if __name__ == "__main__":
    app()
