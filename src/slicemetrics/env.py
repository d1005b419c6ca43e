"""Simple loader for project-wide environment defaults."""

from __future__ import annotations

import os
from pathlib import Path
from typing import MutableMapping, Set

_LOADED: Set[Path] = set()


def load_dotenv_once(path: str | Path = ".env", environ: MutableMapping[str, str] | None = None) -> None:
    """Populate the environment with ``KEY=value`` pairs from a ``.env`` file.

    Blank lines and ``#`` comments are ignored and surrounding quotes are
    stripped. Existing variables always win so a shell export (or a test)
    overrides the file. Each path is read at most once per process.
    """

    env_path = Path(path).resolve()
    if env_path in _LOADED:
        return
    _LOADED.add(env_path)
    if not env_path.exists():
        return

    target = os.environ if environ is None else environ
    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in target:
            target[key] = value


def reset_dotenv_cache() -> None:
    _LOADED.clear()


__all__ = ["load_dotenv_once", "reset_dotenv_cache"]
