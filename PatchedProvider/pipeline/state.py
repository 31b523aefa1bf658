"""
Dirty-state values threaded through the stage sequence.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ..cache.fingerprints import FingerprintResult

Invalidation = Literal["none", "project", "all"]

STAGES = (
    "merge",
    "remap_intermediate",
    "apply_patches",
    "inject_supplemental",
    "access_transform",
    "remap_final",
)


@dataclass(frozen=True)
class DirtyState:
    """Forward-only cascade: once dirty, every later stage executes."""
    dirty: bool = False

    def requires(self, *, artifact_missing: bool, forced: bool = False) -> bool:
        return self.dirty or artifact_missing or forced

    def executed(self) -> "DirtyState":
        return DirtyState(dirty=True)


@dataclass(frozen=True)
class DirtyBaseline:
    """What `initialize` found before any stage ran."""
    fingerprint: FingerprintResult
    invalidation: Invalidation
    uses_project_cache: bool

    @property
    def config_dirty(self) -> bool:
        return self.fingerprint.dirty
