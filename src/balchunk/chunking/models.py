"""
Data model shared by the chunker, the persistence layer and the pipeline.

Chunks are frozen pydantic models. On the wire they use camelCase field
names; kind-specific attributes that do not apply to a chunk are left out.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, model_serializer
from pydantic.alias_generators import to_camel

_MODEL_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
)

# Present in every serialized chunk, even when null.
_CORE_FIELDS = frozenset(
    {"kind", "name", "content", "position", "file", "id", "contentHash", "content_hash"}
)

ChunkRole = Literal["signature", "body"]


class ChunkKind(str, Enum):
    """Construct kinds, listed in emission order."""

    IMPORT = "Import"
    CONFIGURABLE_VARIABLE = "ConfigurableVariable"
    MODULE_VARIABLE = "ModuleVariable"
    TYPE_DEFINITION = "TypeDefinition"
    FUNCTION = "Function"
    SERVICE = "Service"
    RESOURCE = "Resource"
    CLASS = "Class"
    CONSTANT = "Constant"


@dataclass(frozen=True)
class SourceFile:
    """A source file handed to the chunker: identifier plus full text."""

    path: str
    text: str


class Position(BaseModel):
    """1-based line/column span of a chunk in its source file."""

    model_config = _MODEL_CONFIG

    start_line: int
    end_line: int
    start_column: int
    end_column: int


class Chunk(BaseModel):
    """One classified fragment of a source file."""

    model_config = _MODEL_CONFIG

    kind: ChunkKind
    name: Optional[str]
    content: str
    position: Position
    file: str
    id: str
    content_hash: str

    visibility: Optional[str] = None
    variable_type: Optional[str] = None
    parameters: Optional[List[str]] = None
    return_type: Optional[str] = None
    role: Optional[ChunkRole] = None
    path: Optional[str] = None
    listener: Optional[str] = None
    http_method: Optional[str] = None
    resource_path: Optional[str] = None
    full_path: Optional[str] = None
    service_path: Optional[str] = None
    service_listener: Optional[str] = None
    part: Optional[int] = None
    part_count: Optional[int] = None

    @model_serializer(mode="wrap")
    def _omit_unset_attributes(self, handler: Any) -> Dict[str, Any]:
        data = handler(self)
        return {
            key: value
            for key, value in data.items()
            if value is not None or key in _CORE_FIELDS
        }


def make_chunk_id(file: str, kind: ChunkKind, name: Optional[str], start_line: int) -> str:
    """Stable identifier derived from provenance, never from content."""
    key = f"{file}::{kind.value}::{name or ''}::{start_line}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()
