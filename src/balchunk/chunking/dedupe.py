"""
Content-hash deduplication over a chunk stream.

The first chunk seen for a ``contentHash`` wins; later chunks with the same
hash are dropped. SHA-256 collisions are treated as genuine duplicates.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Iterable, List, Set

from ..logger import get_logger
from .models import Chunk

log = get_logger(__name__)


@dataclass
class DedupeResult:
    kept: List[Chunk] = field(default_factory=list)
    dropped: List[Chunk] = field(default_factory=list)


class Deduplicator:
    """
    Stateful first-seen-wins filter.

    The hash set persists across calls, so one instance can filter several
    batches (or be seeded with hashes from a previous run). Calls are
    serialized with a lock.
    """

    def __init__(self, seen_hashes: Iterable[str] = ()) -> None:
        self._seen: Set[str] = set(seen_hashes)
        self._lock = threading.Lock()

    @property
    def seen_count(self) -> int:
        return len(self._seen)

    def dedupe(self, chunks: Iterable[Chunk]) -> DedupeResult:
        result = DedupeResult()
        with self._lock:
            for chunk in chunks:
                if chunk.content_hash in self._seen:
                    result.dropped.append(chunk)
                    continue
                self._seen.add(chunk.content_hash)
                result.kept.append(chunk)
        if result.dropped:
            log.info("duplicate_chunks_dropped", kept=len(result.kept), dropped=len(result.dropped))
        return result


def dedupe(chunks: Iterable[Chunk]) -> List[Chunk]:
    """Order-preserving deduplication of a single stream."""
    return Deduplicator().dedupe(chunks).kept
