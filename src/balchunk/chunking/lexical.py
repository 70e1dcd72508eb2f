"""
Lexical helpers: comment/string masking and balanced-brace matching.

There is no grammar here. Classifiers run their patterns over a *masked*
copy of the source in which comments and literal interiors are blanked out,
so brace counting is a plain counter scan. Offsets are identical in the
masked and original text, and captured text is always sliced from the
original.

Known limitation: masking only understands ``//`` comments, ``#``
documentation lines, ``"..."`` strings and backtick templates. Braces
inside other literal forms (e.g. XML templates) are counted as code and
may unbalance a block, in which case the affected construct is skipped.
"""
from __future__ import annotations

import bisect
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

_BRACE_RE = re.compile(r"[{}]")
_LINE_COMMENT = "//"
_DOC_COMMENT = "#"


def _opens_line(text: str, index: int) -> bool:
    """True when only whitespace precedes ``index`` on its line."""
    return not text[text.rfind("\n", 0, index) + 1:index].strip()


def _blank(chars: List[str], start: int, end: int) -> None:
    for index in range(start, end):
        if chars[index] != "\n":
            chars[index] = " "


def mask_source(text: str) -> str:
    """
    Return ``text`` with comments and literal interiors replaced by spaces.

    Delimiting quotes are kept so patterns can still see that a literal is
    there. Newlines are kept so line numbers survive.
    """
    chars = list(text)
    length = len(text)
    index = 0
    while index < length:
        ch = text[index]
        if (ch == "/" and text.startswith(_LINE_COMMENT, index)) or (
            ch == _DOC_COMMENT and _opens_line(text, index)
        ):
            end = text.find("\n", index)
            end = length if end == -1 else end
            _blank(chars, index, end)
            index = end
        elif ch == '"':
            end = index + 1
            while end < length and text[end] not in '"\n':
                end += 2 if text[end] == "\\" else 1
            end = min(end, length)
            _blank(chars, index + 1, end)
            index = end + 1
        elif ch == "`":
            end = text.find("`", index + 1)
            end = length if end == -1 else end
            _blank(chars, index + 1, end)
            index = end + 1
        else:
            index += 1
    return "".join(chars)


def find_closing(text: str, open_offset: int, open_char: str = "{", close_char: str = "}") -> Optional[int]:
    """
    Return the offset one past the bracket matching ``text[open_offset]``.

    Nesting depth is unbounded. Returns ``None`` when the end of ``text`` is
    reached before the bracket is balanced.
    """
    if text[open_offset:open_offset + 1] != open_char:
        raise ValueError(f"Expected {open_char!r} at offset {open_offset}")
    depth = 0
    for index in range(open_offset, len(text)):
        ch = text[index]
        if ch == open_char:
            depth += 1
        elif ch == close_char:
            depth -= 1
            if depth == 0:
                return index + 1
    return None


def find_block_end(text: str, open_offset: int) -> Optional[int]:
    """Balanced-brace matcher for a ``{`` at ``open_offset``."""
    return find_closing(text, open_offset, "{", "}")


def find_block_start(text: str, offset: int) -> Optional[int]:
    """
    Return the first ``{`` at or after ``offset`` outside parentheses and brackets.

    Used to skip over expressions such as a listener constructor that may
    carry their own brace-delimited arguments. A ``;`` at depth zero ends the
    search.
    """
    depth = 0
    for index in range(offset, len(text)):
        ch = text[index]
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth = max(0, depth - 1)
        elif depth == 0 and ch == "{":
            return index
        elif depth == 0 and ch == ";":
            return None
    return None


class BlockMap:
    """
    Outermost brace intervals of a region, for containment checks.

    An offset is at top level when it lies outside every outermost
    ``{ ... }`` pair of the region. A block that never closes extends to the
    region end.
    """

    def __init__(self, masked: str, start: int = 0, end: Optional[int] = None) -> None:
        self.start = start
        self.end = len(masked) if end is None else end
        self.blocks: List[Tuple[int, int]] = []
        depth = 0
        opened = start
        for match in _BRACE_RE.finditer(masked, start, self.end):
            if match.group() == "{":
                if depth == 0:
                    opened = match.start()
                depth += 1
            elif depth > 0:
                depth -= 1
                if depth == 0:
                    self.blocks.append((opened, match.end()))
        if depth > 0:
            self.blocks.append((opened, self.end))
        self._starts = [block_start for block_start, _ in self.blocks]

    def enclosing(self, offset: int) -> Optional[Tuple[int, int]]:
        idx = bisect.bisect_right(self._starts, offset) - 1
        if idx < 0:
            return None
        block_start, block_end = self.blocks[idx]
        if block_start < offset < block_end:
            return block_start, block_end
        return None

    def is_top_level(self, offset: int) -> bool:
        return self.enclosing(offset) is None


@dataclass(frozen=True)
class ScanContext:
    """Original text, its masked twin and the file-level block map."""

    text: str
    masked: str
    blocks: BlockMap

    @classmethod
    def from_text(cls, text: str) -> "ScanContext":
        masked = mask_source(text)
        return cls(text=text, masked=masked, blocks=BlockMap(masked))
