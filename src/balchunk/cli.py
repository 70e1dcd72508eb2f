"""
Command line interface for the Ballerina structural chunker.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from .chunking import SourceFile, StructuralChunker
from .ingestion import SourceProvider
from .logger import configure_logging, get_logger, redirect_logging_to_file
from .services import ChunkingCallbacks, ChunkingService
from .settings import settings
from .storage import chunk_type_counts, dump_chunks, load_chunk_batches
from .version import get_version

app = typer.Typer(name="balchunk", help="Structural chunker for Ballerina sources.")
configure_logging(level=settings.log_level, enable_console=False)
log = get_logger(__name__)
console = Console()


def _render_counts(title: str, counts: Dict[str, int]) -> Table:
    table = Table(title=title)
    table.add_column("Kind")
    table.add_column("Chunks", justify="right")
    for kind, count in sorted(counts.items()):
        table.add_row(kind, str(count))
    table.add_row("[bold]total[/bold]", str(sum(counts.values())))
    return table


@app.command()
def chunk(
    paths: List[Path] = typer.Argument(..., help="Files or directories to chunk."),
    output_dir: Path = typer.Option(
        settings.output_dir, "--output-dir", "-o", help="Directory for the JSON chunk document."
    ),
    max_chunk_length: int = typer.Option(
        settings.max_chunk_length,
        "--max-chunk-length",
        "-m",
        min=1,
        help="Split chunk content longer than this many characters.",
    ),
    dedupe: bool = typer.Option(
        settings.dedupe, "--dedupe/--no-dedupe", help="Drop chunks with duplicate content."
    ),
    workers: int = typer.Option(settings.workers, "--workers", "-w", min=1, help="Files chunked in parallel."),
    stdout: bool = typer.Option(False, "--stdout", help="Print the JSON document instead of writing it."),
    log_file: Optional[Path] = typer.Option(
        None, "--log", help="Redirect detailed logs to this file."
    ),
) -> None:
    """Chunk Ballerina sources into a JSON document."""
    missing = [path for path in paths if not path.exists()]
    if missing:
        for path in missing:
            typer.echo(f"[ERROR] Path not found: {path}", err=True)
        raise typer.Exit(code=2)

    if log_file:
        redirect_logging_to_file(log_file.resolve(), level=settings.log_level)
        typer.echo(f"Logging detailed output to {log_file.resolve()}", err=True)

    service = ChunkingService(
        source_provider=SourceProvider(
            suffixes=settings.source_suffixes,
            ignore_patterns=settings.ignore_patterns,
        ),
        chunker=StructuralChunker(max_chunk_length=max_chunk_length, workers=workers),
    )

    with Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=Console(stderr=True),
        transient=True,
    ) as progress:
        chunk_task = progress.add_task("Chunking files", total=None)

        def on_chunk(source: SourceFile) -> None:
            progress.update(chunk_task, advance=1, description=f"Chunking {source.path}")

        def on_stage(stage: str) -> None:
            if stage == "load_completed":
                progress.update(chunk_task, description="Chunking files")
            elif stage == "chunk_completed":
                progress.update(chunk_task, description="Chunking complete")

        result = service.run(
            paths,
            dedupe=dedupe,
            output_dir=None if stdout else output_dir,
            callbacks=ChunkingCallbacks(chunk=on_chunk, stage=on_stage),
        )
    log.info("chunk_command_completed", paths=[str(p) for p in paths], stdout=stdout)

    if stdout:
        label = str(paths[0]) if len(paths) == 1 else ",".join(str(p) for p in paths)
        typer.echo(dump_chunks(result.chunks, label))
        return

    console.print(_render_counts("Chunks by kind", chunk_type_counts(result.chunks)))
    typer.echo(
        f"Chunked {len(result.files)} file(s) -> {result.output_path} "
        f"chunks={result.chunk_count} duplicates={len(result.duplicates)}"
    )


@app.command()
def inspect(
    documents: List[Path] = typer.Argument(..., help="Chunk documents written by `chunk`."),
) -> None:
    """Summarize persisted chunk documents, reporting malformed ones."""
    loaded, errors = load_chunk_batches(documents)
    for path, document in loaded.items():
        summary = document.metadata
        title = f"{path.name} ({summary.source_directory or 'unknown source'})"
        console.print(_render_counts(title, chunk_type_counts(document.chunks)))
        typer.echo(f"Generated at {summary.generated_at.isoformat()} files={len({c.file for c in document.chunks})}")
    for path, message in errors.items():
        typer.echo(f"[ERROR] {path}: {message}", err=True)
    if errors:
        raise typer.Exit(code=1)


@app.command()
def version() -> None:
    """Show the installed version."""
    typer.echo(get_version())


if __name__ == "__main__":  # pragma: no cover
    app()
