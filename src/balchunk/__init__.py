"""
balchunk: structural chunking of Ballerina sources for semantic indexing.
"""

from .chunking import Chunk, ChunkKind, SourceFile, StructuralChunker, dedupe
from .version import __version__

__all__ = ["Chunk", "ChunkKind", "SourceFile", "StructuralChunker", "dedupe", "__version__"]
