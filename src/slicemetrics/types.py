"""Public data structures shared by the slice evaluation harness."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True, slots=True)
class SourceSpan:
    """Half-open byte range ``[lo, hi)`` in the global source-map space."""

    lo: int
    hi: int

    def __post_init__(self) -> None:
        if self.lo > self.hi:
            raise ValueError(f"Span start {self.lo} exceeds end {self.hi}")

    def is_empty(self) -> bool:
        return self.lo == self.hi

    def contains(self, other: "SourceSpan") -> bool:
        return self.lo <= other.lo and other.hi <= self.hi

    def overlaps(self, other: "SourceSpan") -> bool:
        """Return True when the spans share a byte or a point lies inside the other."""

        if self.is_empty() and other.is_empty():
            return self.lo == other.lo
        if self.is_empty():
            return other.lo <= self.lo < other.hi
        if other.is_empty():
            return self.lo <= other.lo < self.hi
        return self.lo < other.hi and other.lo < self.hi


@dataclass(frozen=True, slots=True)
class Token:
    """A lexical token of a function body, rebased onto global offsets."""

    index: int
    span: SourceSpan
    kind: str = field(default="", compare=False)


@dataclass(frozen=True, slots=True)
class Position:
    """0-based line index and 0-based character column."""

    line: int
    column: int

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column}


@dataclass(frozen=True, slots=True)
class Range:
    """User-facing rendering of a span within one file."""

    start: Position
    end: Position
    filename: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "filename": self.filename,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Range":
        start = data["start"]
        end = data["end"]
        return cls(
            start=Position(line=int(start["line"]), column=int(start["column"])),
            end=Position(line=int(end["line"]), column=int(end["column"])),
            filename=str(data["filename"]),
        )


class SliceDirection(Enum):
    FORWARD = "Forward"
    BACKWARD = "Backward"
    BOTH = "Both"


class BodyKind(Enum):
    """Closed set of item kinds reported by discovery."""

    FUNCTION = "function"
    METHOD = "method"
    TRAIT_ITEM = "trait_item"
    FOREIGN_ITEM = "foreign_item"

    @property
    def has_body(self) -> bool:
        return self in (BodyKind.FUNCTION, BodyKind.METHOD)


@dataclass(frozen=True, slots=True)
class BodyDescriptor:
    """An item discovered in the crate, as handed to the orchestrator."""

    kind: BodyKind
    function_path: str
    item_span: SourceSpan
    body_span: SourceSpan | None = None
    from_expansion: bool = False


@dataclass(frozen=True, slots=True)
class SliceSample:
    """One place reported by the slicer with its forward and backward ranges."""

    range: SourceSpan
    forward: Tuple[SourceSpan, ...] = ()
    backward: Tuple[SourceSpan, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "forward", tuple(self.forward))
        object.__setattr__(self, "backward", tuple(self.backward))


@dataclass(frozen=True, slots=True)
class FunctionRecord:
    """Per-function data, shared by every sample of that function."""

    function_range: Range
    function_path: str
    num_instructions: int
    num_tokens: int
    num_lines: int


@dataclass(frozen=True, slots=True)
class SliceMetrics:
    """Metrics of one sample in one direction."""

    direction: SliceDirection
    num_relevant_tokens: int
    num_relevant_lines: int
    line_iqr: int


@dataclass(frozen=True, slots=True)
class EvalResult:
    """One output row: a function record joined with one sample/direction."""

    function: FunctionRecord
    range: Range
    metrics: SliceMetrics
    duration: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            # function-level data
            "function_range": self.function.function_range.to_dict(),
            "function_path": self.function.function_path,
            "num_instructions": self.function.num_instructions,
            "num_tokens": self.function.num_tokens,
            "num_lines": self.function.num_lines,
            # sample-level parameters
            "range": self.range.to_dict(),
            "direction": self.metrics.direction.value,
            # sample-level data
            "num_relevant_tokens": self.metrics.num_relevant_tokens,
            "num_relevant_lines": self.metrics.num_relevant_lines,
            "line_iqr": self.metrics.line_iqr,
            "duration": self.duration,
        }


def results_to_dicts(results: List[EvalResult]) -> List[Dict[str, Any]]:
    return [result.to_dict() for result in results]


__all__ = [
    "BodyDescriptor",
    "BodyKind",
    "EvalResult",
    "FunctionRecord",
    "Position",
    "Range",
    "SliceDirection",
    "SliceMetrics",
    "SliceSample",
    "SourceSpan",
    "Token",
    "results_to_dicts",
]
