"""slicemetrics: token and line relevance statistics for program slices."""

from .config import EvalConfig, RunSelector, load_config
from .driver import EvalOrchestrator, EvalRun, run_evaluation
from .errors import FatalError, SkippableInput
from .source_map import SourceMap
from .types import (
    BodyDescriptor,
    BodyKind,
    EvalResult,
    SliceDirection,
    SliceSample,
    SourceSpan,
    Token,
)

__all__ = [
    "BodyDescriptor",
    "BodyKind",
    "EvalConfig",
    "EvalOrchestrator",
    "EvalResult",
    "EvalRun",
    "FatalError",
    "RunSelector",
    "SkippableInput",
    "SliceDirection",
    "SliceSample",
    "SourceMap",
    "SourceSpan",
    "Token",
    "load_config",
    "run_evaluation",
]
