"""Exception hierarchy separating per-body skips from run-ending failures."""

from __future__ import annotations


class EvalError(RuntimeError):
    """Base class for every error raised by the harness."""


class SkippableInput(EvalError):
    """The current body cannot be analysed; the run continues with the next one."""


class RangeConversionError(SkippableInput):
    """A span could not be rendered as a single-file range."""


class FatalError(EvalError):
    """Terminates the whole run."""


class ConfigError(FatalError):
    """Required configuration is missing or invalid."""


class LexError(FatalError):
    """An isolated function body failed to re-lex."""


class OutputError(FatalError):
    """The serialized results could not be written."""


class FocusError(FatalError):
    """Slicer or facts data is missing or malformed."""


__all__ = [
    "ConfigError",
    "EvalError",
    "FatalError",
    "FocusError",
    "LexError",
    "OutputError",
    "RangeConversionError",
    "SkippableInput",
]
