from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..cache.paths import VersionIdentifier
from ..core.utils import resolve_callable
from ..errors import ConfigurationFault
from ..execution.tools import (
    AccessWidenTool,
    BinaryPatchTool,
    JavaAccessTransformerTool,
    JavaBinaryPatchTool,
    JavaMergeTool,
    JavaToolchain,
    MergeTool,
    SpecialSourceRemapTool,
    SymbolRemapTool,
    TinyRemapperTool,
)

OVERLAY_ENTRY = "META-INF/accesstransformer.cfg"

_PATH_FIELDS = {
    "user_cache",
    "project_cache",
    "client_archive",
    "server_archive",
    "mcp_config_archive",
    "universal_archive",
    "userdev_archive",
    "final_mappings",
    "patches_path",
    "installer_archive",
    "injection_archive",
    "overlay_path",
    "merge_tool_jar",
    "special_source_jar",
    "binary_patcher_jar",
    "tiny_remapper_jar",
}
_PATH_LIST_FIELDS = {"resource_dirs", "access_transformer_classpath", "remap_classpath"}


@dataclass(frozen=True)
class PipelineConfig:
    """Configuration surface for one patched-archive pipeline.

    Notes:
    - `user_cache` is shared by every project using the same versions.
    - `project_cache` holds the overlay fingerprint and, when an overlay is in
      use, the project-tier archives.
    - Either `patches_path` or `installer_archive` must be set.
    """

    minecraft_version: str
    forge_version: str
    user_cache: Path
    project_cache: Path

    # Input archives
    client_archive: Path
    server_archive: Path
    mcp_config_archive: Path
    universal_archive: Path
    userdev_archive: Path
    final_mappings: Path
    patches_path: Optional[Path] = None
    installer_archive: Optional[Path] = None
    injection_archive: Optional[Path] = None

    # Project overlay: explicit file, or searched for in resource dirs
    overlay_path: Optional[Path] = None
    resource_dirs: List[Path] = field(default_factory=list)

    use_fabric_mixin: bool = False
    refresh: bool = False

    # Per-entry rewrite pass ("module:function"); skipped when unset
    class_rewriter: Optional[str] = None
    rewrite_workers: Optional[int] = None

    # External tools
    java_executable: str = "java"
    merge_tool_jar: Optional[Path] = None
    special_source_jar: Optional[Path] = None
    binary_patcher_jar: Optional[Path] = None
    tiny_remapper_jar: Optional[Path] = None
    access_transformer_classpath: List[Path] = field(default_factory=list)
    remap_classpath: List[Path] = field(default_factory=list)
    timeout_seconds: int = 600

    @property
    def version(self) -> VersionIdentifier:
        return VersionIdentifier(self.minecraft_version, self.forge_version, self.use_fabric_mixin)

    def to_json_dict(self) -> Dict[str, Any]:
        return _json_sanitize(asdict(self))

    @classmethod
    def from_json_dict(cls, data: Dict[str, Any]) -> "PipelineConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationFault(f"Unknown config keys: {', '.join(unknown)}")

        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key in _PATH_FIELDS:
                kwargs[key] = Path(value).expanduser() if value is not None else None
            elif key in _PATH_LIST_FIELDS:
                kwargs[key] = [Path(v).expanduser() for v in (value or [])]
            else:
                kwargs[key] = value
        try:
            return cls(**kwargs)
        except TypeError as exc:
            raise ConfigurationFault(f"Invalid pipeline config: {exc}") from exc

    def resolve_overlay(self) -> Optional[Path]:
        """The project overlay in use, or None.

        An explicitly configured overlay must exist; resource dirs are searched
        in order and the first hit wins.
        """

        if self.overlay_path is not None:
            if not self.overlay_path.is_file():
                raise ConfigurationFault(f"Configured overlay does not exist: {self.overlay_path}")
            return self.overlay_path
        for src_dir in self.resource_dirs:
            candidate = Path(src_dir) / OVERLAY_ENTRY
            if candidate.is_file():
                return candidate
        return None


def load_config(path: Path) -> PipelineConfig:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationFault(f"Unable to read config: {path} ({exc})") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationFault(f"Malformed config JSON: {path} ({exc})") from exc
    if not isinstance(data, dict):
        raise ConfigurationFault(f"Config file must contain a JSON object: {path}")
    return PipelineConfig.from_json_dict(data)


@dataclass(frozen=True)
class ToolSet:
    merge: MergeTool
    remap_intermediate: SymbolRemapTool
    patch: BinaryPatchTool
    access: AccessWidenTool
    remap_final: SymbolRemapTool
    class_rewriter: Optional[Callable[[bytes], bytes]] = None

    @classmethod
    def from_config(cls, cfg: PipelineConfig) -> "ToolSet":
        required = {
            "merge_tool_jar": cfg.merge_tool_jar,
            "special_source_jar": cfg.special_source_jar,
            "binary_patcher_jar": cfg.binary_patcher_jar,
            "tiny_remapper_jar": cfg.tiny_remapper_jar,
        }
        absent = [k for k, v in required.items() if v is None]
        if not cfg.access_transformer_classpath:
            absent.append("access_transformer_classpath")
        if absent:
            raise ConfigurationFault(f"Missing tool settings: {', '.join(absent)}")

        toolchain = JavaToolchain(java_executable=cfg.java_executable, timeout_seconds=int(cfg.timeout_seconds))
        rewriter = None
        if cfg.class_rewriter:
            try:
                rewriter = resolve_callable(cfg.class_rewriter)
            except (ImportError, ValueError) as exc:
                raise ConfigurationFault(f"Invalid class_rewriter {cfg.class_rewriter!r}: {exc}") from exc

        return cls(
            merge=JavaMergeTool(cfg.merge_tool_jar, toolchain),
            remap_intermediate=SpecialSourceRemapTool(cfg.special_source_jar, toolchain),
            patch=JavaBinaryPatchTool(cfg.binary_patcher_jar, toolchain),
            access=JavaAccessTransformerTool(tuple(cfg.access_transformer_classpath), toolchain),
            remap_final=TinyRemapperTool(cfg.tiny_remapper_jar, toolchain),
            class_rewriter=rewriter,
        )


def _json_sanitize(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(k): _json_sanitize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_sanitize(v) for v in value]
    return str(value)
