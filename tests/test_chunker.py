from typing import List

import pytest

from balchunk.chunking import ChunkKind, SourceFile, StructuralChunker, chunk_files, make_chunk_id

KIND_ORDER = list(ChunkKind)


def _kinds(chunks) -> List[ChunkKind]:
    return [chunk.kind for chunk in chunks]


def test_import_and_function(add_source: str) -> None:
    chunks = StructuralChunker().chunk_text(add_source, "main.bal")

    assert _kinds(chunks) == [ChunkKind.IMPORT, ChunkKind.FUNCTION, ChunkKind.FUNCTION]
    imp, signature, body = chunks

    assert imp.content == "import ballerina/http;"
    assert imp.name is None
    assert (imp.position.start_line, imp.position.start_column) == (1, 1)
    assert (imp.position.end_line, imp.position.end_column) == (1, 22)

    assert signature.name == "add"
    assert signature.role == "signature"
    assert signature.parameters == ["int a", "int b"]
    assert signature.return_type == "int"
    assert "return a + b;" not in signature.content

    assert body.role == "body"
    assert body.content == "return a + b;"
    assert body.id == signature.id
    assert (body.position.start_line, body.position.end_line) == (3, 5)


def test_service_with_inline_resource(service_source: str) -> None:
    chunks = StructuralChunker().chunk_text(service_source, "svc.bal")

    assert _kinds(chunks) == [ChunkKind.SERVICE, ChunkKind.RESOURCE, ChunkKind.RESOURCE]
    service, signature, body = chunks
    assert service.name == "books"
    assert service.content == "service /books on new Listener(8080)"
    assert service.listener == "new Listener(8080)"
    assert signature.name == body.name == "get items"
    assert signature.service_path == "books"
    assert signature.http_method == "get"
    assert signature.full_path == "/books/items"
    assert signature.content == "resource function get items() returns int"
    assert body.content == "return 1;"


def test_full_module_order_and_counts(bookstore_source: str) -> None:
    chunks = StructuralChunker().chunk_text(bookstore_source, "bookstore.bal")

    assert [(c.kind, c.name) for c in chunks if c.role != "body"] == [
        (ChunkKind.IMPORT, None),
        (ChunkKind.IMPORT, None),
        (ChunkKind.CONFIGURABLE_VARIABLE, "port"),
        (ChunkKind.CONFIGURABLE_VARIABLE, "greeting"),
        (ChunkKind.MODULE_VARIABLE, "backend"),
        (ChunkKind.MODULE_VARIABLE, "ep"),
        (ChunkKind.TYPE_DEFINITION, "Book"),
        (ChunkKind.TYPE_DEFINITION, "Id"),
        (ChunkKind.FUNCTION, "lookup"),
        (ChunkKind.FUNCTION, "log"),
        (ChunkKind.FUNCTION, "init"),
        (ChunkKind.SERVICE, "books"),
        (ChunkKind.RESOURCE, "get [string isbn]/author"),
        (ChunkKind.RESOURCE, "post ."),
        (ChunkKind.CLASS, "Store"),
        (ChunkKind.CONSTANT, "MAX_SIZE"),
        (ChunkKind.CONSTANT, "VERSION"),
        (ChunkKind.CONSTANT, "LIMIT"),
    ]
    assert len(chunks) == 23
    ranks = [KIND_ORDER.index(kind) for kind in _kinds(chunks)]
    assert ranks == sorted(ranks)


def test_service_members_are_not_functions(bookstore_source: str) -> None:
    chunks = StructuralChunker().chunk_text(bookstore_source, "bookstore.bal")
    names = {c.name for c in chunks if c.kind is ChunkKind.FUNCTION}
    assert names == {"lookup", "log", "init"}


def test_every_callable_has_one_signature_and_one_body(bookstore_source: str) -> None:
    chunks = StructuralChunker().chunk_text(bookstore_source, "bookstore.bal")
    callables = [c for c in chunks if c.kind in (ChunkKind.FUNCTION, ChunkKind.RESOURCE)]

    by_id = {}
    for chunk in callables:
        by_id.setdefault(chunk.id, []).append(chunk.role)
    assert all(roles == ["signature", "body"] for roles in by_id.values())
    assert len(by_id) == 5


def test_positions_stay_within_the_file(bookstore_source: str) -> None:
    line_count = bookstore_source.count("\n") + 1
    for chunk in StructuralChunker().chunk_text(bookstore_source, "bookstore.bal"):
        pos = chunk.position
        assert 1 <= pos.start_line <= pos.end_line <= line_count
        if pos.start_line == pos.end_line:
            assert pos.start_column <= pos.end_column


def test_resources_follow_their_service(bookstore_source: str) -> None:
    chunks = StructuralChunker().chunk_text(bookstore_source, "bookstore.bal")
    service_index = next(i for i, c in enumerate(chunks) if c.kind is ChunkKind.SERVICE)
    service = chunks[service_index]

    for chunk in chunks[service_index + 1:service_index + 5]:
        assert chunk.kind is ChunkKind.RESOURCE
        assert chunk.service_path == service.name
        assert service.position.start_line < chunk.position.start_line
        assert chunk.position.end_line <= service.position.end_line


def test_ids_are_derived_from_provenance(bookstore_source: str) -> None:
    for chunk in StructuralChunker().chunk_text(bookstore_source, "bookstore.bal"):
        assert chunk.file == "bookstore.bal"
        assert chunk.id == make_chunk_id("bookstore.bal", chunk.kind, chunk.name, chunk.position.start_line)


def test_chunking_is_idempotent(bookstore_source: str) -> None:
    chunker = StructuralChunker()
    first = chunker.chunk_text(bookstore_source, "bookstore.bal")
    second = chunker.chunk_text(bookstore_source, "bookstore.bal")
    assert [c.model_dump() for c in first] == [c.model_dump() for c in second]


def test_unbalanced_construct_is_skipped() -> None:
    text = "import a/b;\nfunction ok() { return; }\nfunction broken() {\n  if x {\n"
    chunks = StructuralChunker().chunk_text(text, "broken.bal")
    assert [(c.kind, c.name) for c in chunks] == [
        (ChunkKind.IMPORT, None),
        (ChunkKind.FUNCTION, "ok"),
        (ChunkKind.FUNCTION, "ok"),
    ]


def test_empty_and_unknown_text_yield_nothing() -> None:
    chunker = StructuralChunker()
    assert chunker.chunk_text("", "empty.bal") == []
    assert chunker.chunk_text("just some words\n", "notes.bal") == []


def test_crlf_line_endings(add_source: str) -> None:
    chunks = StructuralChunker().chunk_text(add_source.replace("\n", "\r\n"), "main.bal")
    assert _kinds(chunks) == [ChunkKind.IMPORT, ChunkKind.FUNCTION, ChunkKind.FUNCTION]
    assert chunks[2].content == "return a + b;"
    assert (chunks[2].position.start_line, chunks[2].position.end_line) == (3, 5)


def test_oversized_body_is_split() -> None:
    text = "function f() {" + "a" * 35 + "}"
    chunks = StructuralChunker(max_chunk_length=10).chunk_text(text, "big.bal")
    bodies = [c for c in chunks if c.role == "body"]

    assert [len(c.content) for c in bodies] == [10, 10, 10, 5]
    assert [c.part for c in bodies] == [1, 2, 3, 4]
    assert "".join(c.content for c in bodies) == "a" * 35
    assert all(len(c.content) <= 10 for c in chunks)


def test_chunker_rejects_non_positive_limit() -> None:
    with pytest.raises(ValueError):
        StructuralChunker(max_chunk_length=0)


def test_chunk_files_keeps_input_order(add_source: str, service_source: str) -> None:
    files = [
        SourceFile(path="a.bal", text=add_source),
        SourceFile(path="b.bal", text=service_source),
        SourceFile(path="c.bal", text=add_source),
    ]
    sequential = chunk_files(files)
    parallel = StructuralChunker(workers=3).chunk_files(files)

    assert [c.file for c in sequential] == ["a.bal"] * 3 + ["b.bal"] * 3 + ["c.bal"] * 3
    assert [c.model_dump() for c in parallel] == [c.model_dump() for c in sequential]


def test_chunk_files_reports_progress(add_source: str) -> None:
    seen: List[str] = []
    files = [SourceFile(path="a.bal", text=add_source), SourceFile(path="b.bal", text=add_source)]
    StructuralChunker().chunk_files(files, progress_callback=lambda source: seen.append(source.path))
    assert seen == ["a.bal", "b.bal"]


def test_documentation_lines_are_not_code() -> None:
    text = "# The type of the value.\npublic function get() returns int {\n    return 1;\n}\n"
    chunks = StructuralChunker().chunk_text(text, "doc.bal")
    assert [(c.kind, c.name, c.role) for c in chunks] == [
        (ChunkKind.FUNCTION, "get", "signature"),
        (ChunkKind.FUNCTION, "get", "body"),
    ]


def test_brace_in_documentation_does_not_hide_later_functions() -> None:
    text = "# Returns {\nfunction a() {\n    return;\n}\n\nfunction b() {\n    return;\n}\n"
    chunks = StructuralChunker().chunk_text(text, "doc.bal")
    assert [c.name for c in chunks] == ["a", "a", "b", "b"]


def test_class_methods_are_functions() -> None:
    text = "class Store {\n    function add(int a) returns int {\n        return a;\n    }\n}\n"
    chunks = StructuralChunker().chunk_text(text, "store.bal")

    assert [(c.kind, c.name, c.role) for c in chunks] == [
        (ChunkKind.FUNCTION, "add", "signature"),
        (ChunkKind.FUNCTION, "add", "body"),
        (ChunkKind.CLASS, "Store", None),
    ]
    assert chunks[0].content == "function add(int a) returns int"
    assert chunks[1].content == "return a;"
    assert (chunks[0].position.start_line, chunks[0].position.end_line) == (2, 4)


def test_inline_record_return_type_is_not_the_body() -> None:
    text = "function f() returns record {| int a; |} { return {a: 1}; }"
    signature, body = StructuralChunker().chunk_text(text, "rec.bal")

    assert signature.content == "function f() returns record {| int a; |}"
    assert signature.return_type == "record {| int a; |}"
    assert body.content == "return {a: 1};"
    assert body.position.end_column == len(text)


def test_inline_record_in_union_return_type() -> None:
    text = 'function h() returns record {| int a; |}|error {\n    return error("x");\n}\n'
    signature, body = StructuralChunker().chunk_text(text, "rec.bal")

    assert signature.return_type == "record {| int a; |}|error"
    assert body.content == 'return error("x");'
