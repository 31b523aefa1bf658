"""
Shared helpers for logging setup and plugin resolution.
"""

from __future__ import annotations

import importlib
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional


def setup_logging(log_type: str, version_label: str, log_dir: Optional[str] = 'logs', *, verbose: bool = False) -> logging.Logger:
    """Sets up the package logger for a pipeline run."""
    logger = logging.getLogger("PatchedProvider")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Prevent adding multiple handlers if the logger already exists
    if not logger.handlers:
        session_id = int(time.time())
        formatter = logging.Formatter(
            f'%(asctime)s - %(levelname)s - [Session: {session_id}]-[Version: {version_label}] - %(message)s'
        )

        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

        if log_dir:
            log_dir_path = Path(log_dir)
            log_dir_path.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_dir_path / f"{log_type}_logs.log", mode='a')  # Append mode
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


def resolve_callable(spec: str) -> Callable[..., Any]:
    """Resolve a ``package.module:function`` reference."""
    module_name, sep, attr = (spec or "").partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Expected 'module:function', got {spec!r}")
    module = importlib.import_module(module_name)
    target = getattr(module, attr, None)
    if not callable(target):
        raise ValueError(f"{spec!r} does not name a callable")
    return target


def format_elapsed(started: float) -> str:
    return f"{time.perf_counter() - started:.2f}s"
