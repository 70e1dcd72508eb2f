"""
Service layer orchestrators for the chunking pipeline.
"""
from .chunking import (
    ChunkingCallbacks,
    ChunkingResult,
    ChunkingService,
    IndexRecord,
    build_index_records,
    render_embedding_text,
)

__all__ = [
    "ChunkingCallbacks",
    "ChunkingResult",
    "ChunkingService",
    "IndexRecord",
    "build_index_records",
    "render_embedding_text",
]
