"""Test configuration ensuring the src/ package is importable, plus shared builders."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import List

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from slicemetrics.indexing.span_index import TokenStore  # noqa: E402
from slicemetrics.source_map import SourceMap  # noqa: E402
from slicemetrics.types import SourceSpan, Token  # noqa: E402


@pytest.fixture
def line_file():
    """A 25-line file where every line is ``x;`` (3 bytes with the newline)."""

    source_map = SourceMap()
    source_file = source_map.add_file("src/lines.rs", "x;\n" * 25)
    return source_map, source_file


def line_span(source_file, line: int, width: int = 1) -> SourceSpan:
    lo = source_file.start_pos + source_file.line_starts[line]
    return SourceSpan(lo, lo + width)


def lines_span(source_file, first: int, last: int) -> SourceSpan:
    """Span from the start of ``first`` to the end of the text on ``last``."""

    lo = source_file.start_pos + source_file.line_starts[first]
    hi = source_file.start_pos + source_file.line_starts[last] + 2
    return SourceSpan(lo, hi)


def one_token_per_line(source_file, first: int, last: int) -> TokenStore:
    tokens: List[Token] = [
        Token(index=idx, span=line_span(source_file, line), kind="identifier")
        for idx, line in enumerate(range(first, last + 1))
    ]
    return TokenStore.build(tokens)
