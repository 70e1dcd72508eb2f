"""
Persistence of chunk streams as JSON documents.
"""

from .chunk_store import (
    ChunkDocument,
    ChunkFormatError,
    DocumentSummary,
    chunk_type_counts,
    dump_chunks,
    load_chunk_batches,
    load_chunks,
    load_document,
    parse_chunks,
    parse_document,
    save_chunks,
    write_chunks,
)

__all__ = [
    "ChunkDocument",
    "ChunkFormatError",
    "DocumentSummary",
    "chunk_type_counts",
    "dump_chunks",
    "load_chunk_batches",
    "load_chunks",
    "load_document",
    "parse_chunks",
    "parse_document",
    "save_chunks",
    "write_chunks",
]
