from __future__ import annotations

import logging
from pathlib import Path

from ..archive.mount import extract_entry

logger = logging.getLogger(__name__)

JOINED_PATCHES_ENTRY = "joined.lzma"


def patches_path(project_cache: Path, forge_version: str) -> Path:
    return Path(project_cache) / forge_version / JOINED_PATCHES_ENTRY


def provide_patches(installer: Path, project_cache: Path, forge_version: str, *, refresh: bool = False) -> Path:
    """Extract the joined binary patch set from the installer/userdev archive.

    Extraction is skipped when the patch set is already cached, unless
    `refresh` is set.
    """

    target = patches_path(project_cache, forge_version)
    target.parent.mkdir(parents=True, exist_ok=True)

    if refresh or not target.exists():
        logger.info(":extracting forge patches")
        extract_entry(installer, JOINED_PATCHES_ENTRY, target)

    return target
