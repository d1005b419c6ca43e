"""Per-function aggregates computed once per body."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from ..indexing.span_index import TokenStore
from ..source_map import SourceMap
from ..types import FunctionRecord, Range, SourceSpan


def lines_touched(source_map: SourceMap, spans: Iterable[SourceSpan]) -> List[int]:
    """Ascending, duplicate-free line indices covered by ``spans``.

    A span crossing several lines contributes every line from its first to its
    last, inclusive.
    """

    lines = set()
    for span in spans:
        lines.update(source_map.span_to_lines(span))
    return sorted(lines)


def compute_function_record(
    *,
    function_range: Range,
    function_path: str,
    num_instructions: int,
    store: TokenStore,
    body_lines: Sequence[int],
) -> FunctionRecord:
    return FunctionRecord(
        function_range=function_range,
        function_path=function_path,
        num_instructions=num_instructions,
        num_tokens=store.total_tokens(),
        num_lines=len(body_lines),
    )


__all__ = ["compute_function_record", "lines_touched"]
