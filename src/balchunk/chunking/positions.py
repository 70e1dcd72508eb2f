"""
Offset to (line, column) conversion.

Lines and columns are 1-based. Only ``\\n`` terminates a line, so CRLF input
maps to the same line numbers as LF input; a trailing ``\\r`` is just the
last column of its line.
"""
from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True, order=True)
class Point:
    line: int
    column: int


def _check_bounds(offset: int, length: int) -> None:
    if offset < 0 or offset > length:
        raise ValueError(f"Offset {offset} out of bounds (0-{length})")


def position_of(text: str, offset: int) -> Point:
    """Return the 1-based line and column of ``offset`` in ``text``."""
    _check_bounds(offset, len(text))
    line = text.count("\n", 0, offset) + 1
    last_newline = text.rfind("\n", 0, offset)
    return Point(line=line, column=offset - last_newline)


class LineIndex:
    """
    Precomputed newline table for repeated lookups on one buffer.

    Equivalent to :func:`position_of` but O(log n) per lookup after an O(n)
    scan, which matters when a file yields hundreds of chunks.
    """

    def __init__(self, text: str) -> None:
        self.length = len(text)
        self.newlines: List[int] = []
        pos = text.find("\n")
        while pos != -1:
            self.newlines.append(pos)
            pos = text.find("\n", pos + 1)

    def point(self, offset: int) -> Point:
        _check_bounds(offset, self.length)
        # Number of newlines strictly before ``offset``.
        idx = bisect.bisect_left(self.newlines, offset)
        if idx == 0:
            return Point(line=1, column=offset + 1)
        return Point(line=idx + 1, column=offset - self.newlines[idx - 1])
