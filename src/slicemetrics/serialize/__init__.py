"""JSON output of evaluation runs."""

from .writer import write_json, write_results

__all__ = ["write_json", "write_results"]
