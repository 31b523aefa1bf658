from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Iterable


def temp_sibling(path: Path, *, suffix: str = ".tmp") -> Path:
    """Reserve a unique temp file in the same directory as `path`.

    Same directory so that `os.replace` onto `path` stays a rename.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=suffix, dir=str(path.parent))
    os.close(fd)
    return Path(name)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    tmp = temp_sibling(path)
    try:
        with tmp.open("wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp, path)
    finally:
        tmp.unlink(missing_ok=True)


def is_nonempty_file(path: Path) -> bool:
    try:
        return path.is_file() and path.stat().st_size > 0
    except OSError:
        return False


def delete_paths(paths: Iterable[Path]) -> None:
    for p in paths:
        p.unlink(missing_ok=True)
