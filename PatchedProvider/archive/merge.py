from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional

from ..errors import ArchiveIntegrityFault
from .mount import MountedArchive, entry_file_name, normalize_entry_name

logger = logging.getLogger(__name__)

EntryFilter = Callable[[str], bool]
RootsSelector = Callable[[MountedArchive], Iterable[str]]


class MergePolicy(str, Enum):
    REPLACE = "replace"
    COPY_MISSING = "copy_missing"


@dataclass(frozen=True)
class MergeSummary:
    copied: int
    skipped: int


def archive_root(archive: MountedArchive) -> Iterable[str]:
    return [""]


def subtree(root: str) -> RootsSelector:
    def _select(archive: MountedArchive) -> Iterable[str]:
        return [root]

    return _select


def is_class_entry(name: str) -> bool:
    return name.endswith(".class")


def _relativize(name: str, root: str) -> str:
    if not root:
        return name
    return name[len(root) + 1:]


def merge_archives(
    source: Path,
    target: Path,
    *,
    entry_filter: Optional[EntryFilter] = None,
    roots: RootsSelector = archive_root,
    policy: MergePolicy = MergePolicy.REPLACE,
) -> MergeSummary:
    """Overlay entries of `source` onto `target`.

    Each root picked by `roots` is walked in `source`; matching entries land in
    `target` at their path relative to that root. REPLACE always overwrites,
    COPY_MISSING only fills in entries the target lacks. A named subtree root
    with no entries in `source` is an `ArchiveIntegrityFault`. The target is
    created if absent, even when nothing matches, and is committed only if the
    whole merge succeeds.
    """

    accept = entry_filter or (lambda _name: True)
    copied = 0
    skipped = 0

    with MountedArchive(source, writable=False) as src, MountedArchive(target, create=True) as dst:
        for root in roots(src):
            root = normalize_entry_name(root)
            names = src.walk(root)
            if root and not names:
                raise ArchiveIntegrityFault(f"No entries under '{root}/' in {Path(source).resolve()}")
            for name in names:
                if not accept(name):
                    continue
                target_name = _relativize(name, root)
                if policy is MergePolicy.COPY_MISSING and dst.exists(target_name):
                    skipped += 1
                    continue
                dst.write(target_name, src.read(name))
                copied += 1

    logger.debug("merged %s -> %s (%s): %d copied, %d skipped", source, target, policy.value, copied, skipped)
    return MergeSummary(copied=copied, skipped=skipped)


def copy_all(source: Path, target: Path) -> MergeSummary:
    return merge_archives(source, target)


def copy_missing_classes(source: Path, target: Path) -> MergeSummary:
    """Backfill classes that a patch run left out of `target`."""
    return merge_archives(source, target, entry_filter=is_class_entry, policy=MergePolicy.COPY_MISSING)


def copy_non_class_files(source: Path, target: Path) -> MergeSummary:
    return merge_archives(source, target, entry_filter=lambda name: not is_class_entry(name))


def copy_subtree(source: Path, target: Path, root: str, *, policy: MergePolicy = MergePolicy.COPY_MISSING) -> MergeSummary:
    return merge_archives(source, target, roots=subtree(root), policy=policy)


def injection_filter(*, use_fabric_mixin: bool) -> EntryFilter:
    def _accept(name: str) -> bool:
        if entry_file_name(name) == "MANIFEST.MF":
            return False
        return use_fabric_mixin or not name.endswith("cpw.mods.modlauncher.api.ITransformationService")

    return _accept
