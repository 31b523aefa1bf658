"""Parallel per-entry rewrite of an archive.

Every matching entry is an independent unit on a thread pool. The caller
blocks until all submitted units are done; units that have not started are
cancelled once one fails. Failures are never dropped: they are collected and
raised together as `EntryRewriteFault`, and the archive is left uncommitted.
"""

from __future__ import annotations

import concurrent.futures
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from ..core.utils import format_elapsed
from ..errors import EntryRewriteFault
from .merge import EntryFilter, is_class_entry
from .mount import MountedArchive

logger = logging.getLogger(__name__)

RewriteFn = Callable[[bytes], bytes]


@dataclass(frozen=True)
class RewriteSummary:
    scanned: int
    changed: Tuple[str, ...]
    workers: int


def default_workers() -> int:
    cpu = os.cpu_count() or 1
    return max(1, min(32, cpu))


def _rewrite_one(archive: MountedArchive, name: str, rewrite: RewriteFn) -> bool:
    original = archive.read(name)
    out = rewrite(original)
    if out == original:
        return False
    archive.write(name, out)
    return True


def rewrite_entries(
    archive_path: Path,
    rewrite: RewriteFn,
    *,
    predicate: EntryFilter = is_class_entry,
    max_workers: Optional[int] = None,
) -> RewriteSummary:
    workers = max(1, int(max_workers)) if max_workers else default_workers()
    started = time.perf_counter()
    logger.info(":rewriting entries for %s", Path(archive_path).resolve())

    with MountedArchive(archive_path) as archive:
        names = [n for n in archive.walk() if predicate(n)]
        changed: List[str] = []
        failures: List[Tuple[str, BaseException]] = []

        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
            futures: Dict[concurrent.futures.Future, str] = {
                pool.submit(_rewrite_one, archive, name, rewrite): name for name in names
            }
            for future in concurrent.futures.as_completed(futures):
                if future.cancelled():
                    continue
                name = futures[future]
                exc = future.exception()
                if exc is not None:
                    if not failures:
                        for pending in futures:
                            pending.cancel()
                    failures.append((name, exc))
                elif future.result():
                    changed.append(name)

        if failures:
            failures.sort(key=lambda item: item[0])
            first_name, first_exc = failures[0]
            raise EntryRewriteFault(
                f"Rewrite failed for {len(failures)} entr{'y' if len(failures) == 1 else 'ies'} "
                f"in {archive_path}; first: {first_name}: {first_exc}",
                failures=failures,
            ) from first_exc

    logger.info(
        ":rewrote %d of %d entries for %s in %s",
        len(changed),
        len(names),
        Path(archive_path).resolve(),
        format_elapsed(started),
    )
    return RewriteSummary(scanned=len(names), changed=tuple(sorted(changed)), workers=workers)
