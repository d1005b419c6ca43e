"""Overlap queries over the rebased token spans of one function body."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterable, Iterator, List, Sequence, Set, Tuple, TypeVar

from ..types import SourceSpan, Token

T = TypeVar("T")


class SpanIndex(Generic[T]):
    """Static interval tree laid out implicitly over span-sorted entries.

    Entries are sorted by ``(lo, hi)``; the subtree rooted at the midpoint of
    ``[start, stop)`` covers exactly that slice, and ``_max_hi[mid]`` stores the
    largest ``hi`` inside it. A query visits O(log n + k) nodes.
    """

    def __init__(self, entries: Iterable[Tuple[SourceSpan, T]]):
        ordered = sorted(entries, key=lambda entry: (entry[0].lo, entry[0].hi))
        self._spans: List[SourceSpan] = [span for span, _ in ordered]
        self._items: List[T] = [item for _, item in ordered]
        self._los: List[int] = [span.lo for span in self._spans]
        self._max_hi: List[int] = [0] * len(ordered)
        if ordered:
            self._fill_max_hi(0, len(ordered))

    @classmethod
    def build(cls, entries: Iterable[Tuple[SourceSpan, T]]) -> "SpanIndex[T]":
        return cls(entries)

    def _fill_max_hi(self, start: int, stop: int) -> int:
        mid = (start + stop) // 2
        best = self._spans[mid].hi
        if start < mid:
            best = max(best, self._fill_max_hi(start, mid))
        if mid + 1 < stop:
            best = max(best, self._fill_max_hi(mid + 1, stop))
        self._max_hi[mid] = best
        return best

    def __len__(self) -> int:
        return len(self._items)

    def spans(self) -> Iterator[Tuple[SourceSpan, T]]:
        return iter(zip(self._spans, self._items))

    def _overlapping_slots(self, query: SourceSpan) -> List[int]:
        slots: List[int] = []
        stack = [(0, len(self._items))]
        while stack:
            start, stop = stack.pop()
            if start >= stop:
                continue
            mid = (start + stop) // 2
            if self._max_hi[mid] < query.lo:
                continue
            stack.append((start, mid))
            if self._los[mid] <= query.hi:
                if self._spans[mid].overlaps(query):
                    slots.append(mid)
                stack.append((mid + 1, stop))
        slots.sort()
        return slots

    def overlapping(self, query: SourceSpan) -> List[T]:
        """Items overlapping ``query``, in span order."""

        return [self._items[slot] for slot in self._overlapping_slots(query)]

    def query(self, spans: Iterable[SourceSpan]) -> Set[T]:
        """Distinct items overlapping any of ``spans``."""

        found: Set[T] = set()
        for span in spans:
            found.update(self.overlapping(span))
        return found


@dataclass(slots=True)
class TokenStore:
    """Tokens of one body in lexical order, indexed by span."""

    tokens: Tuple[Token, ...]
    index: SpanIndex[Token]

    @classmethod
    def build(cls, tokens: Sequence[Token]) -> "TokenStore":
        ordered = tuple(tokens)
        return cls(tokens=ordered, index=SpanIndex.build((token.span, token) for token in ordered))

    def __len__(self) -> int:
        return len(self.tokens)

    def total_tokens(self) -> int:
        return len(self.tokens)

    def spans(self) -> Iterator[SourceSpan]:
        return (token.span for token in self.tokens)

    def query(self, spans: Iterable[SourceSpan]) -> Set[Token]:
        return self.index.query(spans)


__all__ = ["SpanIndex", "TokenStore"]
