from __future__ import annotations

import logging
import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from ..core.files import is_nonempty_file, temp_sibling
from ..errors import ToolInvocationFault

logger = logging.getLogger(__name__)


def require_output(path: Path, *, label: str) -> Path:
    if not is_nonempty_file(path):
        raise ToolInvocationFault(f"{label} did not produce an output at {path}")
    return path


@contextmanager
def staged_output(target: Path, *, label: str) -> Iterator[Path]:
    """Yield a staging path next to `target`; publish it only on success.

    The staging path does not exist when yielded so tools that refuse to
    overwrite still work. On success the output is validated and renamed over
    `target`. On failure the staging file is removed and `target` is left as
    it was.
    """

    staging = temp_sibling(target, suffix=".partial")
    staging.unlink()
    try:
        yield staging
        require_output(staging, label=label)
        os.replace(staging, target)
    finally:
        staging.unlink(missing_ok=True)


def pending_path(target: Path) -> Path:
    """Fixed sibling holding a stage output that a later stage finishes and publishes."""
    return target.with_name(target.name + ".pending.partial")


@contextmanager
def working_copy(target: Path, *, label: str, source: Optional[Path] = None) -> Iterator[Path]:
    """Edit a copy of `target` and rename it over `target` on success.

    When `source` exists it is moved in as the starting point instead of
    copying `target`. On failure `target` and `source` are deleted as well:
    their content is known to be incomplete for the next run.
    """

    work = temp_sibling(target, suffix=".work")
    try:
        if source is not None and source.exists():
            os.replace(source, work)
        else:
            shutil.copyfile(target, work)
        yield work
        require_output(work, label=label)
        os.replace(work, target)
    except BaseException:
        logger.warning("%s failed; discarding %s", label, target)
        target.unlink(missing_ok=True)
        if source is not None:
            source.unlink(missing_ok=True)
        raise
    finally:
        work.unlink(missing_ok=True)
