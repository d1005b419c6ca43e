"""High-level orchestration of a slice evaluation run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .collaborators import Facts, Slicer
from .config import EvalConfig
from .errors import FatalError, FocusError, RangeConversionError, SkippableInput
from .lexing.tokenizer import Tokenizer
from .metrics.function_metrics import compute_function_record, lines_touched
from .metrics.slice_metrics import SliceMetricsCalculator
from .serialize.writer import write_json, write_results
from .source_map import SourceMap
from .telemetry.summary import format_summary, summarize
from .telemetry.timing import TimingLog, timed_phase
from .types import BodyDescriptor, EvalResult, Range, SourceSpan

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RunReport:
    """Counts of what happened to the discovered bodies."""

    discovered: int = 0
    counted: int = 0
    analyzed: int = 0
    filtered: int = 0
    skipped: List[str] = field(default_factory=list)


@dataclass(slots=True)
class EvalRun:
    """Aggregate output of :func:`run_evaluation`."""

    results: List[EvalResult]
    summary: Dict[str, Dict[str, float]]
    timings: TimingLog
    report: RunReport


class EvalOrchestrator:
    """Drives tokenization, indexing and slice metrics for each discovered body.

    Bodies are processed one at a time. Macro-expanded bodies and bodies
    without source text are skipped before they receive a sequential index;
    the run selector is applied after counting.
    """

    def __init__(
        self,
        config: EvalConfig,
        source_map: SourceMap,
        facts: Facts,
        slicer: Slicer,
        *,
        tokenizer: Optional[Tokenizer] = None,
        timings: Optional[TimingLog] = None,
    ):
        self.config = config
        self.source_map = source_map
        self.facts = facts
        self.slicer = slicer
        self.tokenizer = tokenizer or Tokenizer(source_map)
        self.timings = timings or TimingLog()
        self.eval_results: List[EvalResult] = []
        self.report = RunReport()
        self.count = 0
        self.total = 0

    def _skip_reason(self, body: BodyDescriptor) -> Optional[str]:
        if body.from_expansion:
            return "span comes from a macro expansion"
        try:
            source_file = self.source_map.lookup_source_file(body.item_span.lo)
        except ValueError:
            return "span lies outside the source map"
        if source_file.src is None:
            return f"no source text for {source_file.name}"
        if body.body_span is None:
            return "item has no body"
        return None

    def count_qualifying(self, bodies: Iterable[BodyDescriptor]) -> int:
        return sum(1 for body in bodies if body.kind.has_body and self._skip_reason(body) is None)

    def run(self, bodies: Iterable[BodyDescriptor]) -> List[EvalResult]:
        bodies = list(bodies)
        self.report.discovered = len(bodies)
        self.total = self.count_qualifying(bodies)
        try:
            for body in bodies:
                self.visit(body)
        except FatalError:
            if self.config.flush_partial_on_fatal:
                LOGGER.error("Fatal error; flushing %s partial results", len(self.eval_results))
                write_results(self.config.output_path, self.eval_results)
            raise
        self.report.counted = self.count
        return self.eval_results

    def visit(self, body: BodyDescriptor) -> None:
        if not body.kind.has_body:
            return
        try:
            self.analyze(body)
        except SkippableInput as exc:
            LOGGER.info("Skipping %s: %s", body.function_path, exc)
            self.report.skipped.append(body.function_path)

    def analyze(self, body: BodyDescriptor) -> None:
        reason = self._skip_reason(body)
        if reason is not None:
            raise SkippableInput(reason)
        function_range = self.source_map.span_to_range(body.item_span)

        self.count += 1
        function_path = body.function_path
        selector = self.config.only_run
        if selector is not None and not selector.matches(self.count, function_path):
            LOGGER.debug("Filtered out %s (%s)", function_path, self.count)
            self.report.filtered += 1
            return

        LOGGER.info("Visiting %s (%s / %s)", function_path, self.count, self.total)

        with timed_phase(self.timings, function_path, "facts"):
            body_with_facts = self.facts.get_body_with_borrowck_facts(function_path)
            num_instructions = sum(1 for _ in body_with_facts.body.all_locations())

        with timed_phase(self.timings, function_path, "build"):
            store = self.tokenizer.build(body.body_span)
            body_lines = lines_touched(self.source_map, store.spans())

        record = compute_function_record(
            function_range=function_range,
            function_path=function_path,
            num_instructions=num_instructions,
            store=store,
            body_lines=body_lines,
        )

        with timed_phase(self.timings, function_path, "analyze") as analyze:
            samples = self.slicer.focus(function_path)

        with timed_phase(self.timings, function_path, "output"):
            calculator = SliceMetricsCalculator(store, self.source_map, body_lines)
            rows: List[EvalResult] = []
            for sample in samples:
                sample_range = self._sample_range(function_path, sample.range)
                for metrics in calculator.compute_all(sample):
                    rows.append(
                        EvalResult(function=record, range=sample_range, metrics=metrics, duration=analyze.elapsed)
                    )
            self.eval_results.extend(rows)

        self.report.analyzed += 1
        LOGGER.info("%s", self.timings.format_line(function_path))

    def _sample_range(self, function_path: str, span: SourceSpan) -> Range:
        try:
            return self.source_map.span_to_range(span)
        except RangeConversionError as exc:
            raise FocusError(f"{function_path}: sample range cannot be rendered: {exc}") from exc


def run_evaluation(
    bodies: Sequence[BodyDescriptor],
    *,
    config: EvalConfig,
    source_map: SourceMap,
    facts: Facts,
    slicer: Slicer,
    tokenizer: Optional[Tokenizer] = None,
) -> EvalRun:
    """Analyse ``bodies``, write the result array and the optional side reports."""

    orchestrator = EvalOrchestrator(config, source_map, facts, slicer, tokenizer=tokenizer)
    results = orchestrator.run(bodies)
    write_results(config.output_path, results)

    summary = summarize(results)
    LOGGER.info("%s", format_summary(summary))
    if config.timing_path is not None:
        write_json(config.timing_path, orchestrator.timings.to_dict(), indent=True)
    if config.summary_path is not None:
        write_json(config.summary_path, summary, indent=True)

    report = orchestrator.report
    LOGGER.info(
        "Processed %s items | counted=%s analyzed=%s filtered=%s skipped=%s",
        report.discovered,
        report.counted,
        report.analyzed,
        report.filtered,
        len(report.skipped),
    )
    return EvalRun(results=results, summary=summary, timings=orchestrator.timings, report=report)


__all__ = ["EvalOrchestrator", "EvalRun", "RunReport", "run_evaluation"]
