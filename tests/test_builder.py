import hashlib

import pytest

from balchunk.chunking import Chunk, ChunkKind, Position, bound_chunk, content_hash, make_chunk_id
from balchunk.chunking.builder import ChunkBuilder, function_signature, resource_signature, split_parameters
from balchunk.chunking.classifiers import classify_functions, classify_type_definitions
from balchunk.chunking.lexical import ScanContext


def _chunk(content: str) -> Chunk:
    return Chunk(
        kind=ChunkKind.FUNCTION,
        name="f",
        content=content,
        position=Position(start_line=1, end_line=3, start_column=1, end_column=1),
        file="main.bal",
        id=make_chunk_id("main.bal", ChunkKind.FUNCTION, "f", 1),
        content_hash=content_hash(content),
        role="body",
    )


def test_split_parameters_respects_nesting() -> None:
    assert split_parameters("int a, map<int>   b, record {| int x, y; |} r, int[] c") == [
        "int a",
        "map<int> b",
        "record {| int x, y; |} r",
        "int[] c",
    ]
    assert split_parameters("   ") == []


def test_signatures_are_canonical() -> None:
    assert (
        function_signature("add", ["int a", "int b"], "int", visibility="public", qualifiers=("isolated",))
        == "public isolated function add(int a, int b) returns int"
    )
    assert function_signature("run", [], None) == "function run()"
    assert (
        resource_signature("get", "items", [], "int   |  error")
        == "resource function get items() returns int | error"
    )


def test_content_hash_is_sha256_hex() -> None:
    assert content_hash("abc") == hashlib.sha256(b"abc").hexdigest()


def test_chunk_id_depends_on_provenance_only() -> None:
    first = make_chunk_id("a.bal", ChunkKind.FUNCTION, "f", 3)
    assert first == make_chunk_id("a.bal", ChunkKind.FUNCTION, "f", 3)
    assert first != make_chunk_id("b.bal", ChunkKind.FUNCTION, "f", 3)
    assert first != make_chunk_id("a.bal", ChunkKind.FUNCTION, "f", 4)
    assert first != make_chunk_id("a.bal", ChunkKind.RESOURCE, "f", 3)
    assert len(first) == 64


def test_builder_emits_signature_then_body() -> None:
    text = "\npublic function greet(string name) {\n    return;\n}\n"
    context = ScanContext.from_text(text)
    (match,) = list(classify_functions(context))
    signature, body = ChunkBuilder("greet.bal", text).build(match)

    assert signature.role == "signature"
    assert signature.content == "public function greet(string name)"
    assert body.role == "body"
    assert body.content == "return;"
    assert signature.id == body.id
    assert signature.position == body.position == Position(
        start_line=2, end_line=4, start_column=1, end_column=1
    )
    assert signature.return_type == body.return_type == "void"
    assert signature.parameters == ["string name"]
    assert signature.content_hash == content_hash(signature.content)


def test_builder_keeps_exact_source_for_plain_kinds() -> None:
    text = "type Id\n    string;\n"
    context = ScanContext.from_text(text)
    (match,) = list(classify_type_definitions(context))
    (chunk,) = ChunkBuilder("types.bal", text).build(match)

    assert chunk.content == "type Id\n    string;"
    assert chunk.position == Position(start_line=1, end_line=2, start_column=1, end_column=11)
    assert chunk.visibility == "private"
    assert chunk.role is None


def test_bound_chunk_leaves_short_content_alone() -> None:
    chunk = _chunk("x" * 10)
    assert bound_chunk(chunk, 10) == [chunk]


def test_bound_chunk_splits_into_numbered_parts() -> None:
    content = "".join(str(i % 10) for i in range(35))
    parts = bound_chunk(_chunk(content), 10)

    assert [len(p.content) for p in parts] == [10, 10, 10, 5]
    assert "".join(p.content for p in parts) == content
    assert [p.part for p in parts] == [1, 2, 3, 4]
    assert {p.part_count for p in parts} == {4}
    assert {p.id for p in parts} == {parts[0].id}
    assert all(p.content_hash == content_hash(p.content) for p in parts)
    assert all(p.role == "body" and p.name == "f" for p in parts)


def test_bound_chunk_rejects_non_positive_limits() -> None:
    with pytest.raises(ValueError):
        bound_chunk(_chunk("abc"), 0)
