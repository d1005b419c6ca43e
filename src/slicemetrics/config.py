"""Configuration primitives for the slice evaluation harness."""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .env import load_dotenv_once
from .errors import ConfigError

ENV_OUTPUT_PATH = "OUTPUT_PATH"
ENV_ONLY_RUN = "ONLY_RUN"


@dataclass(frozen=True, slots=True)
class RunSelector:
    """Restricts a run to one counted body, by 1-based index or by exact path."""

    index: Optional[int] = None
    path: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "RunSelector":
        """Digits select the Nth counted body; anything else is a path."""

        if text.isascii() and text.isdigit():
            return cls(index=int(text))
        return cls(path=text)

    def matches(self, index: int, path: str) -> bool:
        if self.index is not None:
            return index == self.index
        return path == self.path

    def __str__(self) -> str:
        return str(self.index) if self.index is not None else str(self.path)


@dataclass(slots=True)
class EvalConfig:
    """Settings of one evaluation run."""

    output_path: Path
    only_run: Optional[RunSelector] = None
    flush_partial_on_fatal: bool = False
    log_level: str = "INFO"
    timing_path: Optional[Path] = None
    summary_path: Optional[Path] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EvalConfig":
        """Build a config from a flat mapping, ignoring unknown keys."""

        output_path = data.get("output_path")
        if not output_path:
            raise ConfigError(f"{ENV_OUTPUT_PATH} must be set")
        only_run = data.get("only_run")
        if only_run is not None and not isinstance(only_run, RunSelector):
            only_run = RunSelector.parse(str(only_run))
        return cls(
            output_path=Path(output_path),
            only_run=only_run,
            flush_partial_on_fatal=bool(data.get("flush_partial_on_fatal", False)),
            log_level=str(data.get("log_level", "INFO")),
            timing_path=_optional_path(data.get("timing_path")),
            summary_path=_optional_path(data.get("summary_path")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output_path": str(self.output_path),
            "only_run": str(self.only_run) if self.only_run is not None else None,
            "flush_partial_on_fatal": self.flush_partial_on_fatal,
            "log_level": self.log_level,
            "timing_path": str(self.timing_path) if self.timing_path else None,
            "summary_path": str(self.summary_path) if self.summary_path else None,
        }

    def with_overrides(self, **changes: Any) -> "EvalConfig":
        updates = {key: value for key, value in changes.items() if value is not None}
        if "only_run" in updates and isinstance(updates["only_run"], str):
            updates["only_run"] = RunSelector.parse(updates["only_run"])
        for key in ("output_path", "timing_path", "summary_path"):
            if key in updates:
                updates[key] = Path(updates[key])
        return dataclasses.replace(self, **updates)


def _optional_path(value: Any) -> Optional[Path]:
    return Path(value) if value else None


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ConfigError("Configuration YAML must produce a mapping")
    return data


def load_config(
    path: Optional[Path | str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    dotenv_path: Path | str = ".env",
) -> EvalConfig:
    """Resolve the run configuration: defaults, then YAML, then the environment.

    When ``environ`` is None the process environment is used, after loading
    ``dotenv_path`` if it exists.
    """

    data: Dict[str, Any] = _load_yaml(Path(path)) if path is not None else {}
    if environ is None:
        load_dotenv_once(dotenv_path)
        environ = os.environ
    if environ.get(ENV_OUTPUT_PATH):
        data["output_path"] = environ[ENV_OUTPUT_PATH]
    if ENV_ONLY_RUN in environ:
        data["only_run"] = environ[ENV_ONLY_RUN]
    return EvalConfig.from_dict(data)


__all__ = ["ENV_ONLY_RUN", "ENV_OUTPUT_PATH", "EvalConfig", "RunSelector", "load_config"]
