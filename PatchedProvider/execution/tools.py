"""External tool collaborators.

The pipeline only depends on the `Protocol`s below. The `Java*` classes run
the real tools out of process through `run_command`; their console output is
captured and forwarded to the logging sink at DEBUG level.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from .runner import build_java_command, check_result, log_output, run_command

logger = logging.getLogger(__name__)

ACCESS_TRANSFORMER_MAIN = "net.minecraftforge.accesstransformer.TransformerProcessor"


class MergeTool(Protocol):
    def merge(self, client: Path, server: Path, output: Path) -> None: ...


class SymbolRemapTool(Protocol):
    def remap(
        self,
        archive: Path,
        mappings: Path,
        output: Path,
        *,
        from_namespace: str,
        to_namespace: str,
        classpath: Sequence[Path] = (),
    ) -> None: ...


class BinaryPatchTool(Protocol):
    def apply_patches(self, base: Path, patches: Path, output: Path) -> None: ...


class AccessWidenTool(Protocol):
    def transform(self, archive: Path, rules: Sequence[Path], output: Path) -> None: ...


@dataclass(frozen=True)
class JavaToolchain:
    java_executable: str = "java"
    timeout_seconds: int = 600
    work_dir: Path = field(default_factory=Path.cwd)

    def invoke(
        self,
        label: str,
        args: Sequence[str],
        *,
        jar: Optional[Path] = None,
        classpath: Sequence[Path] = (),
        main_class: Optional[str] = None,
    ) -> None:
        command = build_java_command(
            self.java_executable,
            args=[str(a) for a in args],
            jar=jar,
            classpath=classpath,
            main_class=main_class,
        )
        logger.debug("running %s: %s", label, " ".join(command))
        result = run_command(command, cwd=self.work_dir, timeout_seconds=self.timeout_seconds)
        log_output(result, logger, label=label)
        check_result(result, label=label)


@dataclass(frozen=True)
class JavaMergeTool:
    jar: Path
    toolchain: JavaToolchain = field(default_factory=JavaToolchain)

    def merge(self, client: Path, server: Path, output: Path) -> None:
        self.toolchain.invoke(
            "mergetool",
            ["--client", client, "--server", server, "--output", output, "--ann", "API"],
            jar=self.jar,
        )


@dataclass(frozen=True)
class SpecialSourceRemapTool:
    """Remaps with SpecialSource; the direction is encoded in the SRG file itself."""

    jar: Path
    toolchain: JavaToolchain = field(default_factory=JavaToolchain)

    def remap(
        self,
        archive: Path,
        mappings: Path,
        output: Path,
        *,
        from_namespace: str,
        to_namespace: str,
        classpath: Sequence[Path] = (),
    ) -> None:
        logger.debug("SpecialSource %s -> %s (classpath unused: %d entries)", from_namespace, to_namespace, len(classpath))
        self.toolchain.invoke(
            "specialsource",
            ["--in-jar", archive, "--out-jar", output, "--srg-in", mappings, "--live"],
            jar=self.jar,
        )


@dataclass(frozen=True)
class TinyRemapperTool:
    """tiny-remapper CLI; also rewrites inner-class names from the outer mapping set."""

    jar: Path
    toolchain: JavaToolchain = field(default_factory=JavaToolchain)

    def remap(
        self,
        archive: Path,
        mappings: Path,
        output: Path,
        *,
        from_namespace: str,
        to_namespace: str,
        classpath: Sequence[Path] = (),
    ) -> None:
        args: List[object] = [archive, output, mappings, from_namespace, to_namespace, *classpath]
        args += ["--renameinvalidlocals", "--rebuildsourcefilenames", "--fixpackageaccess"]
        self.toolchain.invoke("tiny-remapper", args, jar=self.jar)


@dataclass(frozen=True)
class JavaBinaryPatchTool:
    jar: Path
    toolchain: JavaToolchain = field(default_factory=JavaToolchain)

    def apply_patches(self, base: Path, patches: Path, output: Path) -> None:
        self.toolchain.invoke(
            "binarypatcher",
            ["--clean", base, "--output", output, "--apply", patches],
            jar=self.jar,
        )


@dataclass(frozen=True)
class JavaAccessTransformerTool:
    classpath: Sequence[Path]
    toolchain: JavaToolchain = field(default_factory=JavaToolchain)

    def transform(self, archive: Path, rules: Sequence[Path], output: Path) -> None:
        args: List[object] = ["--inJar", archive, "--outJar", output]
        # Later rule files extend/override earlier ones.
        for rule_file in rules:
            args += ["--atFile", rule_file]
        self.toolchain.invoke(
            "accesstransformer",
            args,
            classpath=self.classpath,
            main_class=ACCESS_TRANSFORMER_MAIN,
        )
