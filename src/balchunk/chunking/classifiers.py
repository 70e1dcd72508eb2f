"""
Pattern classifiers, one per construct kind.

Each classifier scans a :class:`ScanContext` and yields :class:`RawMatch`
records carrying absolute offsets and the captured sub-fields. Patterns run
over the masked text; captured values are sliced from the original text.
Module-level kinds only match outside every top-level block, and resources
only match at the top level of their service body. Functions may also sit
inside a class (methods), but never inside a service: that containment check
is what keeps a service member from being reported as a standalone function.

Constructs whose block never closes are skipped, as are function
declarations without a body (``= external;``).
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple

from ..logger import get_logger
from .lexical import BlockMap, ScanContext, find_block_end, find_block_start, find_closing
from .models import ChunkKind

log = get_logger(__name__)

UNNAMED_SERVICE = "unnamed_service"

_TYPE = r"[\w:.|?\[\]<>]+"
_RESOURCE_SEGMENT = r"(?:[\w.\-$]+|\[[^\]]*\])"

_IMPORT_RE = re.compile(r"\bimport\s+[^;{}]+;")
_CONFIGURABLE_RE = re.compile(
    rf"\b(?:(?P<public>public)\s+)?configurable\s+(?P<type>{_TYPE})\s+(?P<name>\w+)\s*=[^;]+;"
)
_MODULE_VARIABLE_RE = re.compile(
    rf"^[ \t]*(?P<stmt>(?:(?:public|isolated|listener)\s+)*"
    rf"(?P<type>{_TYPE})\s+(?P<name>\w+)\s*=[^;]+;)",
    re.MULTILINE,
)
_TYPE_DEFINITION_RE = re.compile(r"\b(?:(?P<public>public)\s+)?type\s+(?P<name>\w+)\s")
_FUNCTION_RE = re.compile(
    r"\b(?:(?P<public>public)\s+)?(?P<qualifiers>(?:(?:isolated|transactional|remote)\s+)*)"
    r"function\s+(?P<name>\w+)\s*\("
)
_SERVICE_RE = re.compile(
    r"\b(?P<qualifiers>(?:isolated\s+)*)service\b(?!\s+(?:class|object)\b)"
    r"(?:\s+(?P<type>\w+:\w+))?"
    r"(?:\s*(?P<path>/[\w\-./\[\]]*|\"[^\"\n]*\")|\s+(?P<ident>(?!on\b)\w+))?"
    r"(?P<on>\s+on\b)?"
)
_RESOURCE_RE = re.compile(
    r"\b(?P<qualifiers>(?:isolated\s+)*)resource\s+function\s+(?P<method>\w+)\s+"
    rf"(?P<path>{_RESOURCE_SEGMENT}(?:/{_RESOURCE_SEGMENT})*)\s*\("
)
_CLASS_RE = re.compile(
    r"\b(?:(?P<public>public)\s+)?"
    r"(?P<qualifiers>(?:(?:isolated|readonly|distinct|client|service)\s+)*)"
    r"class\s+(?P<name>\w+)\s*(?=[{;])"
)
_CONSTANT_RE = re.compile(
    rf"\b(?:(?P<public>public)\s+)?(?P<keyword>final|const)\s+"
    rf"(?:(?P<type>{_TYPE})\s+)?(?P<name>\w+)\s*=[^;]+;"
)
_RETURNS_RE = re.compile(r"\s*returns\b")
_TYPE_STOP_RE = re.compile(r"[{;=]")
# A brace right after one of these keywords opens an inline type, not the body.
_INLINE_TYPE_RE = re.compile(r"\b(?:record|object)\s*$")
_OPEN_BRACE_RE = re.compile(r"\s*\{")
_TRAILING_SEMICOLON_RE = re.compile(r"\s*;")

# Words the module-variable pattern could mistake for a type name.
_RESERVED_TYPE_WORDS = frozenset(
    {
        "annotation", "check", "class", "client", "configurable", "const",
        "distinct", "else", "enum", "final", "foreach", "function", "if",
        "import", "isolated", "listener", "lock", "match", "panic", "public",
        "readonly", "remote", "resource", "return", "service", "transaction",
        "transactional", "type", "while", "worker", "xmlns",
    }
)


@dataclass(frozen=True)
class RawMatch:
    """A classifier hit: absolute span, name and captured sub-fields."""

    kind: ChunkKind
    start: int
    end: int
    name: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)
    header_end: Optional[int] = None
    body: Optional[Tuple[int, int]] = None


def _visibility(match: re.Match) -> str:
    return "public" if match.group("public") else "private"


def _qualifiers(match: re.Match) -> Tuple[str, ...]:
    return tuple(match.group("qualifiers").split())


def _slice(context: ScanContext, start: int, end: int) -> Optional[str]:
    value = context.text[start:end].strip()
    return value or None


def _statement_end(masked: str, offset: int) -> Optional[int]:
    """End of a declaration that finishes either with ``;`` or a brace block."""
    for index in range(offset, len(masked)):
        ch = masked[index]
        if ch == ";":
            return index + 1
        if ch == "{":
            end = find_block_end(masked, index)
            if end is None:
                return None
            trailing = _TRAILING_SEMICOLON_RE.match(masked, end)
            return trailing.end() if trailing else end
    return None


def _body_span(open_offset: int, end: int) -> Tuple[int, int]:
    return open_offset + 1, end - 1


def _callable_parts(
    context: ScanContext, kind: ChunkKind, match: re.Match
) -> Optional[Tuple[str, Optional[str], int, int]]:
    """
    Resolve parameter list, return type and body of a function-like match.

    Returns ``(parameters, return_type, open_brace, end)`` or ``None`` when
    the declaration has no body or the body never closes.
    """
    paren = match.end() - 1
    params_end = find_closing(context.masked, paren, "(", ")")
    if params_end is None:
        log.debug("unmatched_block", kind=kind.value, offset=match.start(), bracket="(")
        return None
    tail = _return_clause(context.masked, params_end)
    if tail is None:
        log.debug("callable_without_body", kind=kind.value, offset=match.start())
        return None
    returns_span, open_brace = tail
    end = find_block_end(context.masked, open_brace)
    if end is None:
        log.debug("unmatched_block", kind=kind.value, offset=match.start(), bracket="{")
        return None
    parameters = context.text[paren + 1:params_end - 1]
    return_type = _slice(context, *returns_span) if returns_span else None
    return parameters, return_type, open_brace, end


def _return_clause(masked: str, offset: int) -> Optional[Tuple[Optional[Tuple[int, int]], int]]:
    """
    Locate the return type and the body brace following a parameter list.

    Inline ``record {...}`` and ``object {...}`` blocks belong to the return
    type and are skipped. Returns ``(returns_span, open_brace)``, or ``None``
    when no body follows.
    """
    returns = _RETURNS_RE.match(masked, offset)
    if returns is None:
        brace = _OPEN_BRACE_RE.match(masked, offset)
        return (None, brace.end() - 1) if brace else None
    start = cursor = returns.end()
    while True:
        stop = _TYPE_STOP_RE.search(masked, cursor)
        if stop is None or stop.group() != "{":
            return None
        brace = stop.start()
        if not _INLINE_TYPE_RE.search(masked, start, brace):
            return (start, brace), brace
        inline_end = find_block_end(masked, brace)
        if inline_end is None:
            return None
        cursor = inline_end


def classify_imports(context: ScanContext) -> Iterator[RawMatch]:
    for match in _IMPORT_RE.finditer(context.masked):
        if context.blocks.is_top_level(match.start()):
            yield RawMatch(ChunkKind.IMPORT, match.start(), match.end())


def classify_configurable_variables(context: ScanContext) -> Iterator[RawMatch]:
    for match in _CONFIGURABLE_RE.finditer(context.masked):
        if not context.blocks.is_top_level(match.start()):
            continue
        yield RawMatch(
            ChunkKind.CONFIGURABLE_VARIABLE,
            match.start(),
            match.end(),
            name=match.group("name"),
            fields={
                "visibility": _visibility(match),
                "variable_type": context.text[slice(*match.span("type"))],
            },
        )


def classify_module_variables(context: ScanContext) -> Iterator[RawMatch]:
    for match in _MODULE_VARIABLE_RE.finditer(context.masked):
        start = match.start("stmt")
        if match.group("type") in _RESERVED_TYPE_WORDS:
            continue
        if not context.blocks.is_top_level(start):
            continue
        yield RawMatch(
            ChunkKind.MODULE_VARIABLE,
            start,
            match.end("stmt"),
            name=match.group("name"),
            fields={"variable_type": context.text[slice(*match.span("type"))]},
        )


def classify_type_definitions(context: ScanContext) -> Iterator[RawMatch]:
    for match in _TYPE_DEFINITION_RE.finditer(context.masked):
        if not context.blocks.is_top_level(match.start()):
            continue
        end = _statement_end(context.masked, match.end())
        if end is None:
            log.debug("unmatched_block", kind=ChunkKind.TYPE_DEFINITION.value, offset=match.start())
            continue
        yield RawMatch(
            ChunkKind.TYPE_DEFINITION,
            match.start(),
            end,
            name=match.group("name"),
            fields={"visibility": _visibility(match)},
        )


def classify_functions(context: ScanContext) -> Iterator[RawMatch]:
    """Top-level functions and class methods; service members are left to resources."""
    service_blocks = {(service.header_end, service.end) for service in classify_services(context)}
    for match in _FUNCTION_RE.finditer(context.masked):
        if context.blocks.enclosing(match.start()) in service_blocks:
            log.debug("service_member_skipped", name=match.group("name"), offset=match.start())
            continue
        parts = _callable_parts(context, ChunkKind.FUNCTION, match)
        if parts is None:
            continue
        parameters, return_type, open_brace, end = parts
        yield RawMatch(
            ChunkKind.FUNCTION,
            match.start(),
            end,
            name=match.group("name"),
            fields={
                "visibility": _visibility(match),
                "qualifiers": _qualifiers(match),
                "parameters": parameters,
                "return_type": return_type,
            },
            header_end=open_brace,
            body=_body_span(open_brace, end),
        )


def service_name(path: Optional[str]) -> str:
    """Display name of a service: its path without slashes or quotes."""
    if not path:
        return UNNAMED_SERVICE
    return path.strip('"').strip("/") or UNNAMED_SERVICE


def classify_services(context: ScanContext) -> Iterator[RawMatch]:
    for match in _SERVICE_RE.finditer(context.masked):
        if not context.blocks.is_top_level(match.start()):
            continue
        if match.group("on"):
            open_brace = find_block_start(context.masked, match.end())
        else:
            brace = _OPEN_BRACE_RE.match(context.masked, match.end())
            open_brace = brace.end() - 1 if brace else None
        if open_brace is None:
            log.debug("service_without_body", offset=match.start())
            continue
        end = find_block_end(context.masked, open_brace)
        if end is None:
            log.debug("unmatched_block", kind=ChunkKind.SERVICE.value, offset=match.start())
            continue
        path_span = match.span("path") if match.group("path") else match.span("ident")
        raw_path = context.text[slice(*path_span)] if path_span[0] >= 0 else None
        listener = _slice(context, match.end(), open_brace) if match.group("on") else None
        yield RawMatch(
            ChunkKind.SERVICE,
            match.start(),
            end,
            name=service_name(raw_path),
            fields={"path": raw_path or "/", "listener": listener},
            header_end=open_brace,
            body=_body_span(open_brace, end),
        )


def full_resource_path(service_path: str, resource_path: str) -> str:
    segments = [segment for segment in service_path.strip('"').split("/") if segment]
    if resource_path != ".":
        segments.extend(segment for segment in resource_path.split("/") if segment)
    return "/" + "/".join(segments)


def classify_resources(context: ScanContext, service: RawMatch) -> Iterator[RawMatch]:
    """Scan only the body of ``service`` for resource functions."""
    if service.body is None:
        return
    body_start, body_end = service.body
    scope = BlockMap(context.masked, body_start, body_end)
    for match in _RESOURCE_RE.finditer(context.masked, body_start, body_end):
        if not scope.is_top_level(match.start()):
            continue
        parts = _callable_parts(context, ChunkKind.RESOURCE, match)
        if parts is None:
            continue
        parameters, return_type, open_brace, end = parts
        if end > body_end:
            continue
        method = match.group("method")
        resource_path = context.text[slice(*match.span("path"))]
        yield RawMatch(
            ChunkKind.RESOURCE,
            match.start(),
            end,
            name=f"{method} {resource_path}",
            fields={
                "qualifiers": _qualifiers(match),
                "http_method": method,
                "resource_path": resource_path,
                "full_path": full_resource_path(service.fields["path"], resource_path),
                "service_path": service.name,
                "service_listener": service.fields.get("listener"),
                "parameters": parameters,
                "return_type": return_type,
            },
            header_end=open_brace,
            body=_body_span(open_brace, end),
        )


def classify_classes(context: ScanContext) -> Iterator[RawMatch]:
    for match in _CLASS_RE.finditer(context.masked):
        if not context.blocks.is_top_level(match.start()):
            continue
        end = _statement_end(context.masked, match.end())
        if end is None:
            log.debug("unmatched_block", kind=ChunkKind.CLASS.value, offset=match.start())
            continue
        yield RawMatch(
            ChunkKind.CLASS,
            match.start(),
            end,
            name=match.group("name"),
            fields={"visibility": _visibility(match)},
        )


def classify_constants(context: ScanContext) -> Iterator[RawMatch]:
    for match in _CONSTANT_RE.finditer(context.masked):
        if not context.blocks.is_top_level(match.start()):
            continue
        type_span = match.span("type")
        yield RawMatch(
            ChunkKind.CONSTANT,
            match.start(),
            match.end(),
            name=match.group("name"),
            fields={
                "visibility": _visibility(match),
                "variable_type": context.text[slice(*type_span)] if type_span[0] >= 0 else None,
            },
        )
