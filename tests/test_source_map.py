from __future__ import annotations

import pytest

from slicemetrics.errors import RangeConversionError
from slicemetrics.source_map import SourceMap
from slicemetrics.types import Position, Range, SourceSpan


def test_files_occupy_disjoint_global_ranges():
    source_map = SourceMap()
    first = source_map.add_file("a.rs", "fn a() {}\n")
    second = source_map.add_file("b.rs", "fn b() {}\n")

    assert first.start_pos == 0
    assert second.start_pos == first.end_pos + 1
    assert source_map.lookup_source_file(first.end_pos) is first
    assert source_map.lookup_source_file(second.start_pos) is second
    located = source_map.lookup_byte_offset(second.start_pos + 3)
    assert located.file is second
    assert located.pos == 3


def test_lookup_outside_every_file_raises():
    source_map = SourceMap()
    only = source_map.add_file("a.rs", "x")
    with pytest.raises(ValueError):
        source_map.lookup_source_file(only.end_pos + 1)


def test_snippet_and_lines_use_global_offsets():
    source_map = SourceMap()
    source_map.add_file("pad.rs", "// padding\n")
    code = source_map.add_file("lib.rs", "fn f() {\n    g();\n}\n")
    body_lo = code.start_pos + code.src.index("{")
    body = SourceSpan(body_lo, body_lo + len("{\n    g();\n}"))

    assert source_map.span_to_snippet(body) == "{\n    g();\n}"
    assert source_map.span_to_lines(body) == [0, 1, 2]
    call_lo = code.start_pos + code.src.index("g()")
    assert source_map.span_to_lines(SourceSpan(call_lo, call_lo + 3)) == [1]


def test_span_crossing_files_is_rejected():
    source_map = SourceMap()
    first = source_map.add_file("a.rs", "aaa")
    second = source_map.add_file("b.rs", "bbb")
    crossing = SourceSpan(first.start_pos + 1, second.start_pos + 1)

    with pytest.raises(ValueError):
        source_map.span_to_snippet(crossing)
    with pytest.raises(RangeConversionError):
        source_map.span_to_range(crossing)


def test_range_round_trip_counts_characters_not_bytes():
    source_map = SourceMap()
    code = source_map.add_file("lib.rs", 'let s = "é";\nlet t = 1;\n')
    t_offset = code.src.encode("utf-8").index(b"t =")
    t_span = SourceSpan(code.start_pos + t_offset, code.start_pos + t_offset + 1)
    semi_offset = code.src.encode("utf-8").index(b";")

    rendered = source_map.span_to_range(t_span)
    assert rendered == Range(start=Position(1, 4), end=Position(1, 5), filename="lib.rs")
    assert source_map.lookup_position(code.start_pos + semi_offset) == Position(0, 11)
    assert source_map.range_to_span(rendered) == t_span


def test_files_without_text_cannot_be_rendered():
    source_map = SourceMap()
    external = source_map.add_file("<external>", None, length=40)

    assert external.src is None
    with pytest.raises(RangeConversionError):
        source_map.span_to_range(SourceSpan(external.start_pos, external.start_pos + 4))
    with pytest.raises(ValueError):
        source_map.add_file("<missing-length>", None)


def test_range_to_span_rejects_out_of_bounds_positions():
    source_map = SourceMap()
    source_map.add_file("lib.rs", "ab\ncd\n")
    with pytest.raises(ValueError):
        source_map.range_to_span(Range(Position(0, 0), Position(9, 0), "lib.rs"))
    with pytest.raises(ValueError):
        source_map.range_to_span(Range(Position(0, 0), Position(0, 7), "lib.rs"))
    with pytest.raises(ValueError):
        source_map.range_to_span(Range(Position(0, 0), Position(0, 1), "other.rs"))
