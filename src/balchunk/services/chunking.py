"""
Chunking workflow orchestration: load, chunk, deduplicate, persist.

Also shapes chunks into the records an embedding/vector-index stage
consumes. Neither of those services is called from here.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..chunking import Chunk, Deduplicator, SourceFile, StructuralChunker
from ..ingestion import SourceProvider
from ..logger import get_logger
from ..settings import settings
from ..storage import save_chunks

log = get_logger(__name__)


@dataclass
class ChunkingCallbacks:
    chunk: Optional[Callable[[SourceFile], None]] = None
    stage: Optional[Callable[[str], None]] = None


@dataclass
class ChunkingResult:
    files: List[str]
    chunks: List[Chunk]
    duplicates: List[Chunk] = field(default_factory=list)
    output_path: Optional[Path] = None

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)


@dataclass
class IndexRecord:
    """What the vector index stores per chunk, minus the vector."""

    key: str
    text: str
    payload: Dict[str, Any]


def render_embedding_text(chunk: Chunk) -> str:
    """Text handed to the embedding service for ``chunk``."""
    lines = [f"Type: {chunk.kind.value}"]
    if chunk.name:
        lines.append(f"Name: {chunk.name}")
    if chunk.service_path:
        lines.append(f"Service: {chunk.service_path}")
    if chunk.http_method:
        lines.append(f"HTTP Method: {chunk.http_method}")
    if chunk.return_type and chunk.return_type != "void":
        lines.append(f"Returns: {chunk.return_type}")
    if chunk.part:
        lines.append(f"Part: {chunk.part}/{chunk.part_count}")
    lines.append(f"Content:\n{chunk.content}")
    return "\n".join(lines)


def record_key(chunk: Chunk) -> str:
    """Unique per record: signature/body halves and parts share ``chunk.id``."""
    key = chunk.id
    if chunk.role:
        key = f"{key}#{chunk.role}"
    if chunk.part:
        key = f"{key}#part{chunk.part}"
    return key


def build_index_records(chunks: Sequence[Chunk]) -> List[IndexRecord]:
    return [
        IndexRecord(
            key=record_key(chunk),
            text=render_embedding_text(chunk),
            payload=chunk.model_dump(mode="json", by_alias=True),
        )
        for chunk in chunks
    ]


class ChunkingService:
    """High-level service chaining source loading, chunking and persistence."""

    def __init__(
        self,
        source_provider: Optional[SourceProvider] = None,
        chunker: Optional[StructuralChunker] = None,
        max_chunk_length: Optional[int] = None,
        workers: Optional[int] = None,
    ) -> None:
        self.source_provider = source_provider or SourceProvider(
            suffixes=settings.source_suffixes,
            ignore_patterns=settings.ignore_patterns,
        )
        self.chunker = chunker or StructuralChunker(
            max_chunk_length=max_chunk_length or settings.max_chunk_length,
            workers=workers or settings.workers,
        )

    def run(
        self,
        paths: Sequence[Path],
        dedupe: Optional[bool] = None,
        output_dir: Optional[Path] = None,
        deduplicator: Optional[Deduplicator] = None,
        callbacks: Optional[ChunkingCallbacks] = None,
    ) -> ChunkingResult:
        """Execute the workflow for the selected paths."""
        cb = callbacks or ChunkingCallbacks()
        apply_dedupe = settings.dedupe if dedupe is None else dedupe

        if cb.stage:
            cb.stage("load_started")
        sources = self.source_provider.load(paths)
        if cb.stage:
            cb.stage("load_completed")

        if cb.stage:
            cb.stage("chunk_started")
        chunks = self.chunker.chunk_files(sources, progress_callback=cb.chunk)
        if cb.stage:
            cb.stage("chunk_completed")

        duplicates: List[Chunk] = []
        if apply_dedupe:
            outcome = (deduplicator or Deduplicator()).dedupe(chunks)
            chunks, duplicates = outcome.kept, outcome.dropped

        result = ChunkingResult(
            files=[source.path for source in sources],
            chunks=chunks,
            duplicates=duplicates,
        )
        if output_dir is not None:
            if cb.stage:
                cb.stage("save_started")
            source_label = str(paths[0]) if len(paths) == 1 else ",".join(str(p) for p in paths)
            result.output_path = save_chunks(chunks, output_dir, source_label)
            if cb.stage:
                cb.stage("save_completed")

        log.info(
            "chunking_completed",
            files=len(result.files),
            chunks=result.chunk_count,
            duplicates=len(duplicates),
            output=str(result.output_path) if result.output_path else None,
        )
        return result
