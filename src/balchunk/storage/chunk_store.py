"""
JSON persistence for chunk streams.

A chunk document wraps the chunk array with summary metadata::

    {"metadata": {"sourceDirectory": ..., "generatedAt": ...,
                  "totalChunks": ..., "chunkTypeCounts": {...}},
     "chunks": [...]}

Loading accepts either that document or a bare chunk array and reproduces
the chunks field for field.
"""

from __future__ import annotations

import json
import re
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from ..chunking import Chunk
from ..logger import get_logger

log = get_logger(__name__)

_CHUNK_LIST = TypeAdapter(List[Chunk])


class ChunkFormatError(ValueError):
    """Raised when a persisted chunk document cannot be decoded."""


class DocumentSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    source_directory: Optional[str] = None
    generated_at: datetime
    total_chunks: int
    chunk_type_counts: Dict[str, int]


class ChunkDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    metadata: DocumentSummary
    chunks: List[Chunk]


def chunk_type_counts(chunks: Iterable[Chunk]) -> Dict[str, int]:
    return dict(Counter(chunk.kind.value for chunk in chunks))


def build_document(chunks: Sequence[Chunk], source_directory: Optional[str] = None) -> ChunkDocument:
    summary = DocumentSummary(
        source_directory=source_directory,
        generated_at=datetime.now(timezone.utc),
        total_chunks=len(chunks),
        chunk_type_counts=chunk_type_counts(chunks),
    )
    return ChunkDocument(metadata=summary, chunks=list(chunks))


def dump_chunks(chunks: Sequence[Chunk], source_directory: Optional[str] = None) -> str:
    document = build_document(chunks, source_directory)
    return document.model_dump_json(by_alias=True, indent=2)


def write_chunks(chunks: Sequence[Chunk], path: Path, source_directory: Optional[str] = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_chunks(chunks, source_directory), encoding="utf-8")
    log.info("chunks_written", path=str(path), chunks=len(chunks))
    return path


def document_filename(source_directory: str, when: Optional[datetime] = None) -> str:
    stamp = (when or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    sanitized = re.sub(r"[^a-zA-Z0-9]", "_", Path(source_directory).name) or "sources"
    return f"chunks_{sanitized}_{stamp}.json"


def save_chunks(chunks: Sequence[Chunk], output_dir: Path, source_directory: str) -> Path:
    """Write a timestamped chunk document under ``output_dir``."""
    return write_chunks(chunks, output_dir / document_filename(source_directory), source_directory)


def parse_document(raw: str) -> ChunkDocument:
    """
    Decode a chunk document.

    A bare chunk array is wrapped in a freshly computed summary.
    """
    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ChunkFormatError(f"Malformed JSON: {exc}") from exc
    try:
        if isinstance(data, list):
            return build_document(_CHUNK_LIST.validate_python(data))
        return ChunkDocument.model_validate(data)
    except ValidationError as exc:
        raise ChunkFormatError(f"Invalid chunk document: {exc.error_count()} error(s)\n{exc}") from exc


def parse_chunks(raw: str) -> List[Chunk]:
    return parse_document(raw).chunks


def load_document(path: Path) -> ChunkDocument:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ChunkFormatError(f"Cannot read {path}: {exc}") from exc
    return parse_document(raw)


def load_chunks(path: Path) -> List[Chunk]:
    return load_document(path).chunks


def load_chunk_batches(paths: Iterable[Path]) -> Tuple[Dict[Path, ChunkDocument], Dict[Path, str]]:
    """
    Load several documents, continuing past failures.

    Returns the successfully loaded documents and an error message per
    failed path.
    """
    loaded: Dict[Path, ChunkDocument] = {}
    errors: Dict[Path, str] = {}
    for path in paths:
        try:
            loaded[path] = load_document(path)
        except ChunkFormatError as exc:
            log.warning("chunk_document_invalid", path=str(path), error=str(exc))
            errors[path] = str(exc)
    return loaded, errors
