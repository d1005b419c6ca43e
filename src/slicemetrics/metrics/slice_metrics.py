"""Relevance metrics of one slice sample against a function's tokens."""

from __future__ import annotations

import logging
from bisect import bisect_left, bisect_right
from typing import List, Sequence

from ..indexing.span_index import TokenStore
from ..source_map import SourceMap
from ..types import SliceDirection, SliceMetrics, SliceSample, SourceSpan, Token
from .function_metrics import lines_touched

LOGGER = logging.getLogger(__name__)

DIRECTIONS = (SliceDirection.FORWARD, SliceDirection.BACKWARD, SliceDirection.BOTH)


def ranges_for(sample: SliceSample, direction: SliceDirection) -> List[SourceSpan]:
    """Query spans of a direction. ``Both`` concatenates without deduplicating."""

    if direction is SliceDirection.FORWARD:
        return list(sample.forward)
    if direction is SliceDirection.BACKWARD:
        return list(sample.backward)
    return [*sample.forward, *sample.backward]


def line_iqr(relevant_lines: Sequence[int], body_lines: Sequence[int]) -> int:
    """Count body lines between the floor first and third quartile of ``relevant_lines``.

    Both inputs must be sorted ascending without duplicates. This is not the
    statistical IQR: it measures how much of the function the middle half of
    the slice spans over.
    """

    n = len(relevant_lines)
    if n == 0:
        return 0
    lo = relevant_lines[n // 4]
    hi = relevant_lines[n * 3 // 4]
    return bisect_right(body_lines, hi) - bisect_left(body_lines, lo)


class SliceMetricsCalculator:
    """Evaluates slice samples against one function's token store."""

    def __init__(self, store: TokenStore, source_map: SourceMap, body_lines: Sequence[int]):
        self.store = store
        self.source_map = source_map
        self.body_lines = list(body_lines)

    def relevant_tokens(self, sample: SliceSample, direction: SliceDirection) -> List[Token]:
        tokens = list(self.store.query(ranges_for(sample, direction)))
        tokens.sort(key=lambda token: token.index)
        return tokens

    def compute(self, sample: SliceSample, direction: SliceDirection) -> SliceMetrics:
        relevant = self.relevant_tokens(sample, direction)
        relevant_lines = lines_touched(self.source_map, (token.span for token in relevant))
        metrics = SliceMetrics(
            direction=direction,
            num_relevant_tokens=len(relevant),
            num_relevant_lines=len(relevant_lines),
            line_iqr=line_iqr(relevant_lines, self.body_lines),
        )
        LOGGER.debug("%s %s -> %s", sample.range, direction.value, metrics)
        return metrics

    def compute_all(self, sample: SliceSample) -> List[SliceMetrics]:
        return [self.compute(sample, direction) for direction in DIRECTIONS]


__all__ = ["DIRECTIONS", "SliceMetricsCalculator", "line_iqr", "ranges_for"]
