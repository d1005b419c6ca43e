from __future__ import annotations

import pytest

from conftest import line_span, lines_span, one_token_per_line
from slicemetrics.metrics import SliceMetricsCalculator, compute_function_record, line_iqr, lines_touched, ranges_for
from slicemetrics.types import Position, Range, SliceDirection, SliceSample, SourceSpan


def _calculator(line_file, first=10, last=19):
    source_map, source_file = line_file
    store = one_token_per_line(source_file, first, last)
    body_lines = lines_touched(source_map, store.spans())
    return SliceMetricsCalculator(store, source_map, body_lines), source_file


def test_forward_slice_over_three_lines(line_file):
    calculator, source_file = _calculator(line_file)
    sample = SliceSample(range=line_span(source_file, 12), forward=[lines_span(source_file, 12, 14)])

    metrics = calculator.compute(sample, SliceDirection.FORWARD)

    assert metrics.num_relevant_tokens == 3
    assert metrics.num_relevant_lines == 3
    assert metrics.line_iqr == 3


def test_empty_slice_yields_zeros(line_file):
    calculator, source_file = _calculator(line_file)
    sample = SliceSample(range=line_span(source_file, 12))

    for metrics in calculator.compute_all(sample):
        assert (metrics.num_relevant_tokens, metrics.num_relevant_lines, metrics.line_iqr) == (0, 0, 0)


def test_both_with_identical_ranges_equals_forward(line_file):
    calculator, source_file = _calculator(line_file)
    ranges = [lines_span(source_file, 11, 13), line_span(source_file, 18)]
    sample = SliceSample(range=line_span(source_file, 11), forward=ranges, backward=ranges)

    forward, backward, both = calculator.compute_all(sample)

    assert forward.direction is SliceDirection.FORWARD
    assert backward.direction is SliceDirection.BACKWARD
    assert both.direction is SliceDirection.BOTH
    assert (both.num_relevant_tokens, both.num_relevant_lines, both.line_iqr) == (
        forward.num_relevant_tokens,
        forward.num_relevant_lines,
        forward.line_iqr,
    )


def test_both_is_union_of_directions(line_file):
    calculator, source_file = _calculator(line_file)
    sample = SliceSample(
        range=line_span(source_file, 15),
        forward=[lines_span(source_file, 15, 17)],
        backward=[lines_span(source_file, 10, 11), line_span(source_file, 16)],
    )

    forward, backward, both = calculator.compute_all(sample)

    assert (forward.num_relevant_tokens, backward.num_relevant_tokens) == (3, 3)
    assert both.num_relevant_tokens == 5
    assert both.num_relevant_tokens <= forward.num_relevant_tokens + backward.num_relevant_tokens
    assert ranges_for(sample, SliceDirection.BOTH) == [*sample.forward, *sample.backward]


def test_relevant_tokens_are_in_lexical_order(line_file):
    calculator, source_file = _calculator(line_file)
    sample = SliceSample(
        range=line_span(source_file, 10),
        forward=[line_span(source_file, 18), line_span(source_file, 11), lines_span(source_file, 14, 15)],
    )

    tokens = calculator.relevant_tokens(sample, SliceDirection.FORWARD)

    assert [token.index for token in tokens] == [1, 4, 5, 8]


def test_line_iqr_of_single_line():
    assert line_iqr([7], list(range(0, 20))) == 1
    assert line_iqr([], list(range(0, 20))) == 0


def test_line_iqr_counts_body_lines_between_quartiles():
    body = [2, 3, 5, 8, 9, 11, 12]
    # n=4: lo=relevant[1]=5, hi=relevant[3]=11
    assert line_iqr([3, 5, 9, 11], body) == 4
    # lines outside the body between the quartiles do not count
    assert line_iqr([4, 6, 7, 10], body) == 2


@pytest.mark.parametrize("last", [10, 11, 14, 19])
def test_line_iqr_never_exceeds_function_lines(line_file, last):
    calculator, source_file = _calculator(line_file)
    sample = SliceSample(range=line_span(source_file, 10), backward=[lines_span(source_file, 10, last)])

    metrics = calculator.compute(sample, SliceDirection.BACKWARD)

    assert metrics.line_iqr <= len(calculator.body_lines)
    assert metrics.num_relevant_lines == last - 9


def test_lines_touched_expands_multi_line_spans_and_deduplicates(line_file):
    source_map, source_file = line_file
    spans = [lines_span(source_file, 4, 6), line_span(source_file, 5), line_span(source_file, 1)]

    lines = lines_touched(source_map, spans)

    assert lines == [1, 4, 5, 6]
    assert all(a < b for a, b in zip(lines, lines[1:]))


def test_function_record_counts_tokens_and_lines(line_file):
    source_map, source_file = line_file
    store = one_token_per_line(source_file, 3, 8)
    body_lines = lines_touched(source_map, store.spans())
    function_range = Range(Position(3, 0), Position(8, 2), "src/lines.rs")

    record = compute_function_record(
        function_range=function_range,
        function_path="lines::f",
        num_instructions=12,
        store=store,
        body_lines=body_lines,
    )

    assert record.num_tokens == 6
    assert record.num_lines == 6
    assert record.num_instructions == 12
    assert record.function_range == function_range


def test_empty_query_span_inside_a_token_counts(line_file):
    calculator, source_file = _calculator(line_file)
    lo = line_span(source_file, 13).lo
    sample = SliceSample(range=SourceSpan(lo, lo), forward=[SourceSpan(lo, lo)])

    assert calculator.compute(sample, SliceDirection.FORWARD).num_relevant_tokens == 1
