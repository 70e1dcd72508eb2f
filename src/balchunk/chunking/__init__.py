"""
Structural chunking of Ballerina sources.

Splits source files into classified, positioned and hashed fragments ready
for embedding, without a parser for the language.
"""

from .builder import bound_chunk
from .chunker import StructuralChunker, chunk_files
from .dedupe import DedupeResult, Deduplicator, dedupe
from .lexical import find_block_end
from .models import Chunk, ChunkKind, Position, SourceFile, content_hash, make_chunk_id
from .positions import LineIndex, Point, position_of

__all__ = [
    "Chunk",
    "ChunkKind",
    "DedupeResult",
    "Deduplicator",
    "LineIndex",
    "Point",
    "Position",
    "SourceFile",
    "StructuralChunker",
    "bound_chunk",
    "chunk_files",
    "content_hash",
    "dedupe",
    "find_block_end",
    "make_chunk_id",
    "position_of",
]
