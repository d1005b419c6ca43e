"""Function-level and slice-level metrics."""

from .function_metrics import compute_function_record, lines_touched
from .slice_metrics import DIRECTIONS, SliceMetricsCalculator, line_iqr, ranges_for

__all__ = [
    "DIRECTIONS",
    "SliceMetricsCalculator",
    "compute_function_record",
    "line_iqr",
    "lines_touched",
    "ranges_for",
]
