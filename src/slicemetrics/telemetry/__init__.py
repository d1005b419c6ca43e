"""Run telemetry: phase timings and aggregate summaries."""

from .summary import format_summary, summarize
from .timing import PHASES, PhaseTimer, TimingLog, timed_phase

__all__ = ["PHASES", "PhaseTimer", "TimingLog", "format_summary", "summarize", "timed_phase"]
