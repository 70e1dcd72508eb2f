"""
Turns classifier matches into :class:`Chunk` records.

Body-less kinds yield one chunk. Functions and resources yield a signature
chunk (canonical declaration text, no body) followed by a body chunk (the
text between the braces); both share ``id``, ``position`` and metadata and
differ only in ``role`` and ``content``. Services are emitted as their
declaration header; every other kind carries its exact source text.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from .classifiers import RawMatch
from .models import Chunk, ChunkKind, Position, content_hash, make_chunk_id
from .positions import LineIndex

DEFAULT_RETURN_TYPE = "void"


def split_parameters(raw: str) -> List[str]:
    """Split a parameter list on top-level commas, ignoring nested brackets."""
    params: List[str] = []
    depth = 0
    current: List[str] = []
    for ch in raw:
        if ch in "([{<":
            depth += 1
        elif ch in ")]}>":
            depth = max(0, depth - 1)
        if ch == "," and depth == 0:
            params.append("".join(current))
            current = []
            continue
        current.append(ch)
    params.append("".join(current))
    return [" ".join(param.split()) for param in params if param.strip()]


def _collapse(text: str) -> str:
    return " ".join(text.split())


def function_signature(
    name: str,
    parameters: Sequence[str],
    return_type: Optional[str],
    visibility: str = "private",
    qualifiers: Sequence[str] = (),
) -> str:
    words = ["public"] if visibility == "public" else []
    words.extend(qualifiers)
    words.append(f"function {name}({', '.join(parameters)})")
    if return_type:
        words.append(f"returns {_collapse(return_type)}")
    return " ".join(words)


def resource_signature(
    http_method: str,
    resource_path: str,
    parameters: Sequence[str],
    return_type: Optional[str],
    qualifiers: Sequence[str] = (),
) -> str:
    words = list(qualifiers)
    words.append(f"resource function {http_method} {resource_path}({', '.join(parameters)})")
    if return_type:
        words.append(f"returns {_collapse(return_type)}")
    return " ".join(words)


class ChunkBuilder:
    """Builds chunks for one file; holds the file's line index."""

    def __init__(self, file: str, text: str) -> None:
        self.file = file
        self.text = text
        self.lines = LineIndex(text)

    def position(self, start: int, end: int) -> Position:
        first = self.lines.point(start)
        # ``end`` is exclusive; report the last character of the span.
        last = self.lines.point(max(start, end - 1))
        return Position(
            start_line=first.line,
            end_line=last.line,
            start_column=first.column,
            end_column=last.column,
        )

    def build(self, match: RawMatch) -> List[Chunk]:
        position = self.position(match.start, match.end)
        chunk_id = make_chunk_id(self.file, match.kind, match.name, position.start_line)
        base: Dict[str, Any] = {
            "kind": match.kind,
            "name": match.name,
            "position": position,
            "file": self.file,
            "id": chunk_id,
        }

        if match.kind in (ChunkKind.FUNCTION, ChunkKind.RESOURCE):
            return self._build_callable(match, base)

        if match.kind is ChunkKind.SERVICE:
            header = _collapse(self.text[match.start:match.header_end])
            return [self._chunk(base, header, path=match.fields["path"], listener=match.fields["listener"])]

        content = self.text[match.start:match.end]
        attributes = {
            key: match.fields[key]
            for key in ("visibility", "variable_type")
            if match.fields.get(key) is not None
        }
        return [self._chunk(base, content, **attributes)]

    def _build_callable(self, match: RawMatch, base: Dict[str, Any]) -> List[Chunk]:
        fields = match.fields
        parameters = split_parameters(fields["parameters"])
        return_type = fields["return_type"]
        attributes: Dict[str, Any] = {
            "parameters": parameters,
            "return_type": _collapse(return_type) if return_type else DEFAULT_RETURN_TYPE,
        }
        if match.kind is ChunkKind.FUNCTION:
            signature = function_signature(
                match.name or "",
                parameters,
                return_type,
                visibility=fields["visibility"],
                qualifiers=fields["qualifiers"],
            )
            attributes["visibility"] = fields["visibility"]
        else:
            signature = resource_signature(
                fields["http_method"],
                fields["resource_path"],
                parameters,
                return_type,
                qualifiers=fields["qualifiers"],
            )
            for key in ("http_method", "resource_path", "full_path", "service_path", "service_listener"):
                attributes[key] = fields[key]

        body_start, body_end = match.body or (match.end, match.end)
        body = self.text[body_start:body_end].strip()
        return [
            self._chunk(base, signature, role="signature", **attributes),
            self._chunk(base, body, role="body", **attributes),
        ]

    @staticmethod
    def _chunk(base: Dict[str, Any], content: str, **attributes: Any) -> Chunk:
        return Chunk(content=content, content_hash=content_hash(content), **base, **attributes)


def bound_chunk(chunk: Chunk, max_length: int) -> List[Chunk]:
    """
    Split ``chunk`` into numbered parts of at most ``max_length`` characters.

    Parts keep the parent's ``id``, kind and metadata. Splitting is purely by
    character count and may cut through a token or a line.
    """
    if max_length <= 0:
        raise ValueError("max_length must be positive")
    content = chunk.content
    if len(content) <= max_length:
        return [chunk]
    pieces = [content[i:i + max_length] for i in range(0, len(content), max_length)]
    total = len(pieces)
    return [
        chunk.model_copy(
            update={
                "content": piece,
                "content_hash": content_hash(piece),
                "part": index,
                "part_count": total,
            }
        )
        for index, piece in enumerate(pieces, start=1)
    ]
