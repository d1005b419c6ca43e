"""Command-line entrypoint for the slice evaluation harness."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import List, Optional

from .collaborators import FocusDump
from .config import ENV_ONLY_RUN, ENV_OUTPUT_PATH, load_config
from .discovery import discover_crate
from .driver import run_evaluation
from .env import load_dotenv_once
from .errors import ConfigError, FatalError
from .source_map import SourceMap

LOGGER = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Slice relevance metrics over a Rust crate")
    parser.add_argument("crate", type=Path, help="Crate root (directory holding Cargo.toml or src/)")
    parser.add_argument("--focus", type=Path, required=True, help="Focus dump JSON produced by the slicer")
    parser.add_argument("--config", type=Path, default=None, help="Optional configuration YAML")
    parser.add_argument("--output", type=str, default=None, help=f"Result path (overrides {ENV_OUTPUT_PATH})")
    parser.add_argument("--only-run", type=str, default=None, help=f"Index or path filter (overrides {ENV_ONLY_RUN})")
    parser.add_argument("--crate-name", type=str, default=None, help="Root segment of function paths")
    parser.add_argument("--flush-partial", action="store_true", help="Write partial results on fatal errors")
    parser.add_argument("--log-level", default=None, help="Python logging level (default: INFO)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    load_dotenv_once()
    environ = dict(os.environ)
    if args.output:
        environ[ENV_OUTPUT_PATH] = args.output
    if args.only_run is not None:
        environ[ENV_ONLY_RUN] = args.only_run

    try:
        config = load_config(args.config, environ=environ)
    except ConfigError as exc:
        logging.basicConfig(level=logging.INFO)
        LOGGER.error("Invalid configuration: %s", exc)
        return 2
    if args.flush_partial:
        config = config.with_overrides(flush_partial_on_fatal=True)
    level_name = (args.log_level or config.log_level).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO))

    source_map = SourceMap()
    try:
        bodies = discover_crate(args.crate, source_map, crate_name=args.crate_name)
        focus = FocusDump.load(args.focus, source_map)
        run = run_evaluation(bodies, config=config, source_map=source_map, facts=focus, slicer=focus)
    except FatalError as exc:
        LOGGER.error("Evaluation aborted: %s", exc)
        return 1
    LOGGER.info("Evaluation finished with %s results", len(run.results))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
