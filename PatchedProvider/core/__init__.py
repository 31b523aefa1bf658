"""
Core utilities shared across the pipeline: logging setup and atomic file helpers.
"""

from .files import atomic_write_bytes, delete_paths, is_nonempty_file, temp_sibling
from .utils import format_elapsed, resolve_callable, setup_logging

__all__ = [
    'atomic_write_bytes', 'delete_paths', 'is_nonempty_file', 'temp_sibling',
    'format_elapsed', 'resolve_callable', 'setup_logging',
]
