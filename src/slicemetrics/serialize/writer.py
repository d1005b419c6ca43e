"""Write evaluation output as JSON without leaving truncated files behind."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Sequence

import orjson

from ..errors import OutputError
from ..types import EvalResult, results_to_dicts

LOGGER = logging.getLogger(__name__)


def write_json(path: Path | str, payload: Any, *, indent: bool = False) -> Path:
    """Serialize ``payload`` to a sibling temp file, then rename it over ``path``."""

    path = Path(path)
    option = orjson.OPT_INDENT_2 if indent else 0
    try:
        data = orjson.dumps(payload, option=option)
    except TypeError as exc:
        raise OutputError(f"Cannot serialize output for {path}: {exc}") from exc
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile("wb", dir=path.parent, prefix=f".{path.name}.", delete=False) as fh:
            tmp_name = fh.name
            fh.write(data)
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise OutputError(f"Cannot write {path}: {exc}") from exc
    LOGGER.debug("Wrote %s bytes to %s", len(data), path)
    return path


def write_results(path: Path | str, results: Sequence[EvalResult]) -> Path:
    """Write the result array consumed by the downstream analysis scripts."""

    written = write_json(path, results_to_dicts(list(results)))
    LOGGER.info("Wrote %s results to %s", len(results), written)
    return written


__all__ = ["write_json", "write_results"]
