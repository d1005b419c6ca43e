"""Interfaces of the external slicer and fact extractor, plus a JSON-backed adapter.

The harness never computes slices or MIR itself. A slicer run produces a
*focus dump* with, per fully qualified function path, the statement count of
every MIR basic block and the slice samples found in that body::

    {"functions": {
        "krate::foo": {
            "basic_blocks": [3, 1, 0],
            "samples": [
                {"range": R, "forward": [R, ...], "backward": [R, ...]}
            ]
        }
    }}

where ``R`` is a range mapping as produced by :meth:`Range.to_dict`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Protocol, Sequence, Tuple

import orjson

from .errors import FocusError
from .source_map import SourceMap
from .types import Range, SliceSample, SourceSpan

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Location:
    block: int
    statement_index: int


@dataclass(frozen=True, slots=True)
class MirBody:
    """Statement counts per basic block; each block also has a terminator."""

    basic_blocks: Tuple[int, ...]

    def all_locations(self) -> Iterator[Location]:
        for block, statements in enumerate(self.basic_blocks):
            for statement_index in range(statements + 1):
                yield Location(block, statement_index)


@dataclass(frozen=True, slots=True)
class BodyWithFacts:
    body: MirBody
    facts: Any = None


class Facts(Protocol):
    def get_body_with_borrowck_facts(self, function_id: str) -> BodyWithFacts: ...


class Slicer(Protocol):
    def focus(self, function_id: str) -> List[SliceSample]: ...


class FocusDump:
    """Serves :class:`Facts` and :class:`Slicer` from a precomputed dump."""

    def __init__(self, functions: Mapping[str, Mapping[str, Any]], source_map: SourceMap):
        self.functions = dict(functions)
        self.source_map = source_map

    @classmethod
    def load(cls, path: Path | str, source_map: SourceMap) -> "FocusDump":
        path = Path(path)
        try:
            payload = orjson.loads(path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as exc:
            raise FocusError(f"Cannot read focus dump {path}: {exc}") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("functions"), dict):
            raise FocusError(f"Focus dump {path} must map 'functions' to an object")
        LOGGER.info("Loaded focus dump for %s functions from %s", len(payload["functions"]), path)
        return cls(payload["functions"], source_map)

    def function_paths(self) -> List[str]:
        return sorted(self.functions)

    def _entry(self, function_id: str) -> Mapping[str, Any]:
        try:
            return self.functions[function_id]
        except KeyError:
            raise FocusError(f"No focus data for {function_id}") from None

    def get_body_with_borrowck_facts(self, function_id: str) -> BodyWithFacts:
        entry = self._entry(function_id)
        blocks = entry.get("basic_blocks")
        if not isinstance(blocks, list) or any(not isinstance(count, int) or count < 0 for count in blocks):
            raise FocusError(f"{function_id}: 'basic_blocks' must be a list of statement counts")
        return BodyWithFacts(body=MirBody(tuple(blocks)), facts=entry.get("facts"))

    def focus(self, function_id: str) -> List[SliceSample]:
        entry = self._entry(function_id)
        samples: List[SliceSample] = []
        for raw in entry.get("samples", []):
            try:
                samples.append(
                    SliceSample(
                        range=self._to_span(raw["range"]),
                        forward=self._to_spans(raw.get("forward", [])),
                        backward=self._to_spans(raw.get("backward", [])),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise FocusError(f"{function_id}: malformed sample {raw!r}: {exc}") from exc
        return samples

    def _to_span(self, raw: Dict[str, Any]) -> SourceSpan:
        return self.source_map.range_to_span(Range.from_dict(raw))

    def _to_spans(self, raws: Sequence[Dict[str, Any]]) -> Tuple[SourceSpan, ...]:
        return tuple(self._to_span(raw) for raw in raws)


__all__ = ["BodyWithFacts", "Facts", "FocusDump", "Location", "MirBody", "Slicer"]
