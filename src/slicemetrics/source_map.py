"""Global byte-offset source map over the files of one crate.

Every registered file occupies ``[start_pos, start_pos + len(bytes)]`` in a
single coordinate space, with a one byte gap before the next file so that a
file's end position never coincides with the next file's start. Offsets are
UTF-8 byte offsets; columns reported in :class:`~slicemetrics.types.Position`
are character columns.
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .errors import RangeConversionError
from .types import Position, Range, SourceSpan

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SourceFile:
    """A file registered in the source map. ``src`` is None for external files."""

    name: str
    start_pos: int
    length: int
    src: Optional[str] = None
    data: Optional[bytes] = field(default=None, repr=False)
    line_starts: List[int] = field(default_factory=lambda: [0], repr=False)

    @property
    def end_pos(self) -> int:
        return self.start_pos + self.length

    def contains(self, pos: int) -> bool:
        return self.start_pos <= pos <= self.end_pos

    def lookup_line(self, local: int) -> int:
        """Return the 0-based line index holding the local byte offset."""

        return bisect_right(self.line_starts, local) - 1

    def line_bytes(self, line: int) -> bytes:
        if self.data is None:
            raise ValueError(f"{self.name} has no source text")
        start = self.line_starts[line]
        end = self.line_starts[line + 1] if line + 1 < len(self.line_starts) else len(self.data)
        return self.data[start:end]


@dataclass(frozen=True, slots=True)
class SourceFileAndBytePos:
    file: SourceFile
    pos: int


def _line_starts(data: bytes) -> List[int]:
    starts = [0]
    index = data.find(b"\n")
    while index != -1:
        starts.append(index + 1)
        index = data.find(b"\n", index + 1)
    return starts


class SourceMap:
    """Snippet extraction and offset translation for a set of source files."""

    def __init__(self) -> None:
        self._files: List[SourceFile] = []
        self._starts: List[int] = []
        self._by_name: Dict[str, SourceFile] = {}
        self._next_start = 0

    @property
    def files(self) -> List[SourceFile]:
        return list(self._files)

    def add_file(self, name: str, src: Optional[str], *, length: Optional[int] = None) -> SourceFile:
        """Register a file. Files without text must declare their byte length."""

        if name in self._by_name:
            raise ValueError(f"Source file already registered: {name}")
        if src is not None:
            data = src.encode("utf-8")
            source_file = SourceFile(
                name=name,
                start_pos=self._next_start,
                length=len(data),
                src=src,
                data=data,
                line_starts=_line_starts(data),
            )
        else:
            if length is None or length < 0:
                raise ValueError("Files registered without text need a non-negative length")
            source_file = SourceFile(name=name, start_pos=self._next_start, length=length)
        self._files.append(source_file)
        self._starts.append(source_file.start_pos)
        self._by_name[name] = source_file
        self._next_start = source_file.end_pos + 1
        LOGGER.debug("Registered %s at %s..%s", name, source_file.start_pos, source_file.end_pos)
        return source_file

    def load_file(self, path: Path | str, name: Optional[str] = None) -> SourceFile:
        path = Path(path)
        return self.add_file(name or str(path), path.read_text(encoding="utf-8"))

    def get_file(self, name: str) -> SourceFile:
        try:
            return self._by_name[name]
        except KeyError:
            raise ValueError(f"Unknown source file: {name}") from None

    def lookup_source_file(self, pos: int) -> SourceFile:
        slot = bisect_right(self._starts, pos) - 1
        if slot < 0 or not self._files[slot].contains(pos):
            raise ValueError(f"Byte position {pos} is outside every source file")
        return self._files[slot]

    def lookup_byte_offset(self, pos: int) -> SourceFileAndBytePos:
        source_file = self.lookup_source_file(pos)
        return SourceFileAndBytePos(file=source_file, pos=pos - source_file.start_pos)

    def _file_for_span(self, span: SourceSpan) -> SourceFile:
        source_file = self.lookup_source_file(span.lo)
        if not source_file.contains(span.hi):
            raise ValueError(f"Span {span.lo}..{span.hi} crosses a file boundary")
        return source_file

    def span_to_snippet(self, span: SourceSpan) -> str:
        source_file = self._file_for_span(span)
        if source_file.data is None:
            raise ValueError(f"{source_file.name} has no source text")
        lo = span.lo - source_file.start_pos
        hi = span.hi - source_file.start_pos
        return source_file.data[lo:hi].decode("utf-8")

    def span_to_lines(self, span: SourceSpan) -> List[int]:
        """Return every 0-based line index from the span's start to its end, inclusive."""

        source_file = self._file_for_span(span)
        if source_file.data is None:
            raise ValueError(f"{source_file.name} has no source text")
        first = source_file.lookup_line(span.lo - source_file.start_pos)
        last = source_file.lookup_line(span.hi - source_file.start_pos)
        return list(range(first, last + 1))

    def lookup_position(self, pos: int) -> Position:
        located = self.lookup_byte_offset(pos)
        source_file = located.file
        if source_file.data is None:
            raise ValueError(f"{source_file.name} has no source text")
        line = source_file.lookup_line(located.pos)
        prefix = source_file.data[source_file.line_starts[line] : located.pos]
        return Position(line=line, column=len(prefix.decode("utf-8", errors="replace")))

    def span_to_range(self, span: SourceSpan) -> Range:
        try:
            source_file = self._file_for_span(span)
            start = self.lookup_position(span.lo)
            end = self.lookup_position(span.hi)
        except ValueError as exc:
            raise RangeConversionError(str(exc)) from exc
        return Range(start=start, end=end, filename=source_file.name)

    def range_to_span(self, range_: Range) -> SourceSpan:
        source_file = self.get_file(range_.filename)
        lo = self._position_to_pos(source_file, range_.start)
        hi = self._position_to_pos(source_file, range_.end)
        return SourceSpan(lo, hi)

    def _position_to_pos(self, source_file: SourceFile, position: Position) -> int:
        if source_file.data is None:
            raise ValueError(f"{source_file.name} has no source text")
        if not 0 <= position.line < len(source_file.line_starts):
            raise ValueError(f"Line {position.line} is outside {source_file.name}")
        text = source_file.line_bytes(position.line).decode("utf-8")
        if not 0 <= position.column <= len(text):
            raise ValueError(f"Column {position.column} is outside line {position.line} of {source_file.name}")
        offset = len(text[: position.column].encode("utf-8"))
        return source_file.start_pos + source_file.line_starts[position.line] + offset


__all__ = ["SourceFile", "SourceFileAndBytePos", "SourceMap"]
