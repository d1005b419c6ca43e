"""Aggregate statistics over the results of a run, per slice direction."""

from __future__ import annotations

from typing import Dict, List, Sequence

import numpy as np

from ..types import EvalResult, SliceDirection


def _ratio(numerators: Sequence[int], denominators: Sequence[int]) -> np.ndarray:
    num = np.asarray(numerators, dtype=float)
    den = np.asarray(denominators, dtype=float)
    return np.divide(num, den, out=np.zeros_like(num), where=den > 0)


def summarize(results: Sequence[EvalResult]) -> Dict[str, Dict[str, float]]:
    """Mean relevance ratios and slicer latency percentiles for each direction."""

    summary: Dict[str, Dict[str, float]] = {}
    for direction in SliceDirection:
        rows: List[EvalResult] = [row for row in results if row.metrics.direction is direction]
        if not rows:
            continue
        num_tokens = [row.function.num_tokens for row in rows]
        num_lines = [row.function.num_lines for row in rows]
        durations = np.asarray([row.duration for row in rows], dtype=float)
        summary[direction.value] = {
            "samples": float(len(rows)),
            "functions": float(len({row.function.function_path for row in rows})),
            "mean_token_ratio": float(np.mean(_ratio([r.metrics.num_relevant_tokens for r in rows], num_tokens))),
            "mean_line_ratio": float(np.mean(_ratio([r.metrics.num_relevant_lines for r in rows], num_lines))),
            "mean_iqr_ratio": float(np.mean(_ratio([r.metrics.line_iqr for r in rows], num_lines))),
            "duration_p50": float(np.percentile(durations, 50)),
            "duration_p95": float(np.percentile(durations, 95)),
        }
    return summary


def format_summary(summary: Dict[str, Dict[str, float]]) -> str:
    lines = ["", "=== Slice Evaluation Summary ==="]
    for direction, stats in summary.items():
        lines.append(
            f"  {direction:9s} samples={int(stats['samples'])} functions={int(stats['functions'])} "
            f"tokens={stats['mean_token_ratio']:.3f} lines={stats['mean_line_ratio']:.3f} "
            f"iqr={stats['mean_iqr_ratio']:.3f} p50={stats['duration_p50']:.3f}s p95={stats['duration_p95']:.3f}s"
        )
    if not summary:
        lines.append("  no results")
    return "\n".join(lines)


__all__ = ["format_summary", "summarize"]
