from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from .core.utils import setup_logging
from .errors import PatchedProviderError
from .pipeline import PatchedPipeline, load_config


def add_config_args(parser: Any) -> argparse.ArgumentParser:
    parser.add_argument("--config", type=str, required=True, help="Pipeline config (JSON).")
    parser.add_argument("--refresh", action="store_true", default=False, help="Discard both cache tiers.")
    parser.add_argument("--overlay", type=str, default=None, help="Project access transformer overlay.")
    return parser


def add_execution_args(parser: Any) -> argparse.ArgumentParser:
    parser.add_argument("--rewrite-workers", type=int, default=None)
    parser.add_argument("--timeout-seconds", type=int, default=None)
    return parser


def add_logging_args(parser: Any, *, log_dir_default: str = "logs") -> argparse.ArgumentParser:
    parser.add_argument("--log-dir", type=str, default=str(log_dir_default))
    parser.add_argument("--verbose", action="store_true", default=False)
    return parser


def build_argparser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="PatchedProvider",
        description="Build the patched archive, reusing cached stages where possible.",
    )
    add_config_args(parser)
    add_execution_args(parser)
    add_logging_args(parser)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_argparser().parse_args(argv)

    try:
        cfg = load_config(Path(args.config))
        overrides = {}
        if args.refresh:
            overrides["refresh"] = True
        if args.overlay:
            overrides["overlay_path"] = Path(args.overlay)
        if args.rewrite_workers is not None:
            overrides["rewrite_workers"] = int(args.rewrite_workers)
        if args.timeout_seconds is not None:
            overrides["timeout_seconds"] = int(args.timeout_seconds)
        cfg = dataclasses.replace(cfg, **overrides)

        logger = setup_logging("pipeline", str(cfg.version), log_dir=args.log_dir, verbose=bool(args.verbose))
        pipeline = PatchedPipeline(cfg)
        final_archive = pipeline.run()
    except PatchedProviderError as exc:
        logging.getLogger("PatchedProvider").error("%s: %s", type(exc).__name__, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    executed = ", ".join(pipeline.stages_executed) or "none"
    logger.info("stages executed: %s", executed)
    print(final_archive)
    return 0
