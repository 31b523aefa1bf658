from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Literal, Tuple

from .fingerprints import fingerprint_path

Tier = Literal["global", "project"]


@dataclass(frozen=True)
class VersionIdentifier:
    minecraft_version: str
    forge_version: str
    use_fabric_mixin: bool = False

    @property
    def patch_id(self) -> str:
        patch_id = f"forge-{self.forge_version}"
        if self.use_fabric_mixin:
            patch_id += "-fabric-mixin"
        return patch_id

    def __str__(self) -> str:
        return f"{self.minecraft_version}-{self.patch_id}"


@dataclass(frozen=True)
class StageArtifact:
    name: str
    path: Path
    tier: Tier

    def exists(self) -> bool:
        return self.path.is_file()


@dataclass(frozen=True)
class ArtifactPlan:
    version: VersionIdentifier
    merged: StageArtifact
    remapped: StageArtifact
    patched: StageArtifact
    patched_at: StageArtifact
    final: StageArtifact
    fingerprint: StageArtifact

    def global_artifacts(self) -> Tuple[StageArtifact, ...]:
        return (self.merged, self.remapped, self.patched)

    def project_artifacts(self) -> Tuple[StageArtifact, ...]:
        return (self.patched_at, self.final)

    def stage_artifacts(self) -> Tuple[StageArtifact, ...]:
        return self.global_artifacts() + self.project_artifacts()

    def all_artifacts(self) -> Tuple[StageArtifact, ...]:
        return self.stage_artifacts() + (self.fingerprint,)


def missing(artifacts: Tuple[StageArtifact, ...]) -> List[StageArtifact]:
    return [a for a in artifacts if not a.exists()]


def plan_artifacts(
    version: VersionIdentifier,
    *,
    user_cache: Path,
    project_cache: Path,
    use_overlay: bool,
) -> ArtifactPlan:
    """Derive the artifact locations for one version.

    Global-tier names depend only on `version`. The project-tier directory
    moves to `project_cache` when an overlay is in use; without one the
    project-tier artifacts are shareable and live next to the global ones.
    """

    user_cache = Path(user_cache)
    project_cache = Path(project_cache)
    tier_root = project_cache if use_overlay else user_cache

    global_dir = user_cache / version.patch_id
    project_dir = tier_root / version.patch_id

    # exist_ok keeps this safe when several projects share the user cache.
    for d in (global_dir, project_dir, project_cache):
        d.mkdir(parents=True, exist_ok=True)

    return ArtifactPlan(
        version=version,
        merged=StageArtifact("merged", user_cache / f"minecraft-{version.minecraft_version}-merged.jar", "global"),
        remapped=StageArtifact("remapped", global_dir / "merged-srg.jar", "global"),
        patched=StageArtifact("patched", global_dir / "merged-srg-patched.jar", "global"),
        patched_at=StageArtifact("patched_at", project_dir / "merged-srg-at-patched.jar", "project"),
        final=StageArtifact("final", project_dir / "merged-patched.jar", "project"),
        fingerprint=StageArtifact("fingerprint", fingerprint_path(project_cache), "project"),
    )
