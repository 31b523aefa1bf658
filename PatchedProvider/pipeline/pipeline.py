from __future__ import annotations

import logging
import tempfile
import time
from pathlib import Path
from typing import Callable, List, Optional

from ..archive.merge import (
    MergePolicy,
    copy_all,
    copy_missing_classes,
    copy_non_class_files,
    copy_subtree,
    injection_filter,
    merge_archives,
)
from ..archive.mount import extract_entry, read_json_entry
from ..archive.rewrite import rewrite_entries
from ..cache.fingerprints import evaluate_fingerprint, fingerprint_path
from ..cache.paths import ArtifactPlan, StageArtifact, missing, plan_artifacts
from ..core.files import delete_paths
from ..core.utils import format_elapsed
from ..errors import ArchiveIntegrityFault, ConfigurationFault, StaleArtifactFault
from ..patches.provider import provide_patches
from .artifacts import pending_path, require_output, staged_output, working_copy
from .models import OVERLAY_ENTRY, PipelineConfig, ToolSet
from .state import DirtyBaseline, DirtyState

logger = logging.getLogger(__name__)

MCP_CONFIG_ENTRY = "config.json"


class PatchedPipeline:
    """Incremental producer of the patched, remapped, access-widened archive.

    Stage order:
    - merge                client + server -> merged           (global)
    - remap_intermediate   official -> srg                     (global)
    - apply_patches        binary patches, backfill, rewrite   (global, unpublished)
    - inject_supplemental  universal/userdev/injection entries (global, publishes)
    - access_transform     base rules + project overlay        (project)
    - remap_final          srg -> official                     (project)

    A stage runs when the incoming state is dirty or its artifact is missing;
    having run, everything after it runs too. A dirty overlay fingerprint
    forces `access_transform` on its own.

    `apply_patches` and `inject_supplemental` share the patched archive. The
    former leaves its output in a pending sibling and only the latter renames
    it into place, so a patched archive on disk always carries the injected
    entries.
    """

    def __init__(self, config: PipelineConfig, tools: Optional[ToolSet] = None):
        self._cfg = config
        self._tools = tools if tools is not None else ToolSet.from_config(config)
        self._plan: Optional[ArtifactPlan] = None
        self._baseline: Optional[DirtyBaseline] = None
        self._overlay: Optional[Path] = None
        self._state = DirtyState()
        self.stages_executed: List[str] = []

    # ------------------------------------------------------------------
    # Initialization / invalidation

    def initialize(self) -> DirtyBaseline:
        cfg = self._cfg
        self._overlay = cfg.resolve_overlay()
        cfg.project_cache.mkdir(parents=True, exist_ok=True)

        fingerprint = evaluate_fingerprint(
            fingerprint_path(cfg.project_cache),
            self._overlay,
            force_refresh=cfg.refresh,
        )
        self._plan = plan_artifacts(
            cfg.version,
            user_cache=cfg.user_cache,
            project_cache=cfg.project_cache,
            use_overlay=self._overlay is not None,
        )

        if cfg.refresh or missing(self._plan.global_artifacts()):
            self.clean_all_cache()
            invalidation = "all"
        elif fingerprint.dirty or missing(self._plan.project_artifacts()):
            self.clean_project_cache()
            invalidation = "project"
        else:
            invalidation = "none"

        self._baseline = DirtyBaseline(
            fingerprint=fingerprint,
            invalidation=invalidation,
            uses_project_cache=self._overlay is not None,
        )
        self._state = DirtyState()
        self.stages_executed = []
        logger.debug("initialized %s: invalidation=%s overlay=%s", cfg.version, invalidation, self._overlay)
        return self._baseline

    def clean_all_cache(self) -> None:
        delete_paths(a.path for a in self.plan.global_artifacts())
        delete_paths([pending_path(self.plan.patched.path)])
        self.clean_project_cache()

    def clean_project_cache(self) -> None:
        delete_paths(a.path for a in self.plan.project_artifacts())

    # ------------------------------------------------------------------
    # Caller surface

    @property
    def plan(self) -> ArtifactPlan:
        if self._plan is None:
            raise ConfigurationFault("Pipeline used before initialize()")
        return self._plan

    @property
    def baseline(self) -> DirtyBaseline:
        if self._baseline is None:
            raise ConfigurationFault("Pipeline used before initialize()")
        return self._baseline

    @property
    def final_archive(self) -> Path:
        return self.plan.final.path

    @property
    def patched_archive(self) -> Path:
        return self.plan.patched.path

    @property
    def uses_project_cache(self) -> bool:
        return self.baseline.uses_project_cache

    @property
    def config_dirty(self) -> bool:
        return self.baseline.config_dirty

    def run_primary_stages(self) -> DirtyState:
        if self.config_dirty:
            logger.info(":found dirty access transformers")

        state = DirtyState()
        state = self.merge(state)
        state = self.remap_intermediate(state)
        state = self.apply_patches(state)
        state = self.inject_supplemental(state)
        self._state = state
        return state

    def run_final_stages(self) -> DirtyState:
        state = self.access_transform(self._state)
        state = self.remap_final(state)
        self._state = DirtyState()
        return state

    def run(self) -> Path:
        self.initialize()
        self.run_primary_stages()
        self.run_final_stages()
        return self.final_archive

    # ------------------------------------------------------------------
    # Stages: each takes the incoming DirtyState and returns the outgoing one

    def merge(self, state: DirtyState) -> DirtyState:
        return self._stage("merge", state, self.plan.merged, self._merge)

    def remap_intermediate(self, state: DirtyState) -> DirtyState:
        return self._stage("remap_intermediate", state, self.plan.remapped, self._remap_intermediate)

    def apply_patches(self, state: DirtyState) -> DirtyState:
        return self._stage("apply_patches", state, self.plan.patched, self._apply_patches)

    def inject_supplemental(self, state: DirtyState) -> DirtyState:
        return self._stage("inject_supplemental", state, self.plan.patched, self._inject_supplemental)

    def access_transform(self, state: DirtyState) -> DirtyState:
        return self._stage(
            "access_transform",
            state,
            self.plan.patched_at,
            self._access_transform,
            forced=self.config_dirty,
        )

    def remap_final(self, state: DirtyState) -> DirtyState:
        return self._stage("remap_final", state, self.plan.final, self._remap_final)

    def _stage(
        self,
        name: str,
        state: DirtyState,
        artifact: StageArtifact,
        action: Callable[[], None],
        *,
        forced: bool = False,
    ) -> DirtyState:
        if not state.requires(artifact_missing=not artifact.exists(), forced=forced):
            logger.debug("skipping %s: %s is up to date", name, artifact.path)
            return state

        started = time.perf_counter()
        action()
        self.stages_executed.append(name)
        logger.info(":%s done in %s", name, format_elapsed(started))
        return state.executed()

    # ------------------------------------------------------------------
    # Stage bodies

    def _merge(self) -> None:
        logger.info(":merging jars")
        with staged_output(self.plan.merged.path, label="merge") as staging:
            self._tools.merge.merge(self._cfg.client_archive, self._cfg.server_archive, staging)

    def _remap_intermediate(self) -> None:
        logger.info(":remapping minecraft (official -> srg)")
        mcp = self._cfg.mcp_config_archive
        mappings_entry = _mappings_entry_name(read_json_entry(mcp, MCP_CONFIG_ENTRY), mcp)

        with tempfile.TemporaryDirectory(prefix="patched-provider-") as tmp:
            srg = extract_entry(mcp, mappings_entry, Path(tmp) / Path(mappings_entry).name)
            with staged_output(self.plan.remapped.path, label="remap official -> srg") as staging:
                self._tools.remap_intermediate.remap(
                    self.plan.merged.path,
                    srg,
                    staging,
                    from_namespace="official",
                    to_namespace="srg",
                )

    def _apply_patches(self) -> None:
        started = time.perf_counter()
        logger.info(":patching jars")
        clean = self.plan.remapped.path

        with staged_output(pending_path(self.plan.patched.path), label="binary patch") as staging:
            self._tools.patch.apply_patches(clean, self._patches(), staging)
            require_output(staging, label="binary patch")

            copy_missing_classes(clean, staging)
            if self._tools.class_rewriter is not None:
                rewrite_entries(staging, self._tools.class_rewriter, max_workers=self._cfg.rewrite_workers)
            logger.info(":patched jars in %s", format_elapsed(started))

            logger.info(":copying resources")
            copy_non_class_files(self._cfg.client_archive, staging)
            copy_non_class_files(self._cfg.server_archive, staging)

    def _inject_supplemental(self) -> None:
        cfg = self._cfg
        target = self.plan.patched.path
        pending = pending_path(target)
        if not pending.exists() and not target.exists():
            raise StaleArtifactFault(f"Nothing to inject into: run apply_patches before inject_supplemental ({target})")

        with working_copy(target, label="inject supplemental classes", source=pending) as work:
            logger.info(":injecting forge classes into minecraft")
            copy_all(cfg.universal_archive, work)
            copy_subtree(cfg.userdev_archive, work, "inject", policy=MergePolicy.COPY_MISSING)

            if cfg.injection_archive is not None:
                logger.info(":injecting loom classes into minecraft")
                merge_archives(
                    cfg.injection_archive,
                    work,
                    entry_filter=injection_filter(use_fabric_mixin=cfg.use_fabric_mixin),
                )

    def _access_transform(self) -> None:
        logger.info(":access transforming minecraft")
        source = self.plan.patched.path

        with tempfile.TemporaryDirectory(prefix="patched-provider-") as tmp:
            base_rules = extract_entry(source, OVERLAY_ENTRY, Path(tmp) / "at-conf.cfg")
            rules = [base_rules]
            if self._overlay is not None:
                rules.append(self._overlay)
            with staged_output(self.plan.patched_at.path, label="access transform") as staging:
                self._tools.access.transform(source, rules, staging)

    def _remap_final(self) -> None:
        logger.info(":remapping minecraft (srg -> official)")
        with staged_output(self.plan.final.path, label="remap srg -> official") as staging:
            self._tools.remap_final.remap(
                self.plan.patched_at.path,
                self._cfg.final_mappings,
                staging,
                from_namespace="srg",
                to_namespace="official",
                classpath=tuple(self._cfg.remap_classpath),
            )

    def _patches(self) -> Path:
        cfg = self._cfg
        if cfg.patches_path is not None:
            if not cfg.patches_path.is_file():
                raise ConfigurationFault(f"Patch set does not exist: {cfg.patches_path}")
            return cfg.patches_path
        if cfg.installer_archive is not None:
            return provide_patches(cfg.installer_archive, cfg.project_cache, cfg.forge_version, refresh=cfg.refresh)
        raise ConfigurationFault("Either patches_path or installer_archive must be configured")


def _mappings_entry_name(config: object, archive: Path) -> str:
    try:
        name = config["data"]["mappings"]  # type: ignore[index]
    except (KeyError, TypeError):
        name = None
    if not isinstance(name, str) or not name:
        raise ArchiveIntegrityFault(f"'{MCP_CONFIG_ENTRY}' in {archive} does not declare data.mappings")
    return name
