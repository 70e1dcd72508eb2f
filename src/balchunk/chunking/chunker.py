"""
Structural chunker for Ballerina sources.

Runs the classifiers over each file in a fixed kind order, builds chunks and
applies the size bound. Output order is part of the contract: imports,
configurable variables, module variables, types, functions, then each
service immediately followed by its resources, then classes and constants.
Within a kind, chunks follow source order.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Iterator, List, Optional, Sequence

from ..logger import get_logger
from .builder import ChunkBuilder, bound_chunk
from .classifiers import (
    RawMatch,
    classify_classes,
    classify_configurable_variables,
    classify_constants,
    classify_functions,
    classify_imports,
    classify_module_variables,
    classify_resources,
    classify_services,
    classify_type_definitions,
)
from .lexical import ScanContext
from .models import Chunk, SourceFile

log = get_logger(__name__)

Classifier = Callable[[ScanContext], Iterable[RawMatch]]

_LEADING_CLASSIFIERS: Sequence[Classifier] = (
    classify_imports,
    classify_configurable_variables,
    classify_module_variables,
    classify_type_definitions,
    classify_functions,
)
_TRAILING_CLASSIFIERS: Sequence[Classifier] = (
    classify_classes,
    classify_constants,
)


class StructuralChunker:
    """Pattern-based chunker that needs no parser for the target language."""

    DEFAULT_MAX_CHUNK_LENGTH = 2000

    def __init__(self, max_chunk_length: int = DEFAULT_MAX_CHUNK_LENGTH, workers: int = 1) -> None:
        if max_chunk_length <= 0:
            raise ValueError("max_chunk_length must be positive")
        self.max_chunk_length = max_chunk_length
        self.workers = max(1, workers)

    def _matches(self, context: ScanContext) -> Iterator[RawMatch]:
        for classify in _LEADING_CLASSIFIERS:
            yield from classify(context)
        for service in classify_services(context):
            yield service
            yield from classify_resources(context, service)
        for classify in _TRAILING_CLASSIFIERS:
            yield from classify(context)

    def chunk_text(self, text: str, file: str) -> List[Chunk]:
        context = ScanContext.from_text(text)
        builder = ChunkBuilder(file, text)
        chunks: List[Chunk] = []
        for match in self._matches(context):
            for chunk in builder.build(match):
                chunks.extend(bound_chunk(chunk, self.max_chunk_length))
        return chunks

    def chunk_file(self, source: SourceFile) -> List[Chunk]:
        """Chunk one file; the result depends only on its path and text."""
        chunks = self.chunk_text(source.text, source.path)
        log.info("file_chunked", file=source.path, chunks=len(chunks))
        return chunks

    def chunk_files(
        self,
        files: Iterable[SourceFile],
        progress_callback: Optional[Callable[[SourceFile], None]] = None,
    ) -> List[Chunk]:
        """
        Chunk ``files`` and concatenate the results in input order.

        With ``workers > 1`` files are chunked on a thread pool; ``map`` keeps
        the output in input order regardless of completion order.
        """
        sources = list(files)

        def run(source: SourceFile) -> List[Chunk]:
            try:
                return self.chunk_file(source)
            finally:
                if progress_callback:
                    progress_callback(source)

        if self.workers > 1 and len(sources) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                per_file = list(pool.map(run, sources))
        else:
            per_file = [run(source) for source in sources]

        results: List[Chunk] = [chunk for chunks in per_file for chunk in chunks]
        log.info("files_chunked", files=len(sources), chunks=len(results))
        return results


def chunk_files(files: Iterable[SourceFile], max_chunk_length: int = StructuralChunker.DEFAULT_MAX_CHUNK_LENGTH) -> List[Chunk]:
    return StructuralChunker(max_chunk_length=max_chunk_length).chunk_files(files)
