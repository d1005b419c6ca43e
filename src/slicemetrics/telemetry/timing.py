"""Per-function phase timings of an evaluation run."""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator

PHASES = ("facts", "build", "analyze", "output")


@dataclass(slots=True)
class PhaseTimer:
    phase: str
    elapsed: float = 0.0


@dataclass(slots=True)
class TimingLog:
    """Collects ``function_path -> {phase -> seconds}``."""

    functions: Dict[str, Dict[str, float]] = field(default_factory=dict)

    def record(self, function_path: str, phase: str, duration: float) -> None:
        self.functions.setdefault(function_path, {})[phase] = duration

    def phase_totals(self) -> Dict[str, float]:
        totals = {phase: 0.0 for phase in PHASES}
        for phases in self.functions.values():
            for phase, duration in phases.items():
                totals[phase] = totals.get(phase, 0.0) + duration
        return totals

    def format_line(self, function_path: str) -> str:
        phases = self.functions.get(function_path, {})
        return " ".join(f"{phase}={phases.get(phase, 0.0):.3f}" for phase in PHASES)

    def to_dict(self) -> Dict[str, Any]:
        return {"functions": self.functions, "phase_totals": self.phase_totals()}


@contextmanager
def timed_phase(log: TimingLog, function_path: str, phase: str) -> Iterator[PhaseTimer]:
    """Time the enclosed block and record it under ``function_path``.

    Example:
        >>> log = TimingLog()
        >>> with timed_phase(log, "krate::foo", "build") as timer:
        ...     pass
        >>> timer.elapsed == log.functions["krate::foo"]["build"]
        True
    """

    timer = PhaseTimer(phase=phase)
    start = time.perf_counter()
    try:
        yield timer
    finally:
        timer.elapsed = time.perf_counter() - start
        log.record(function_path, phase, timer.elapsed)


__all__ = ["PHASES", "PhaseTimer", "TimingLog", "timed_phase"]
