from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import pytest

from PatchedProvider.errors import ConfigurationFault, ToolInvocationFault
from PatchedProvider.execution import (
    JavaAccessTransformerTool,
    JavaBinaryPatchTool,
    JavaToolchain,
    build_java_command,
    check_result,
    run_command,
)

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses a shell script as the java executable")


def _fake_java(path: Path, *, exit_code: int) -> Path:
    path.write_text(
        "#!/bin/sh\n"
        'echo "args: $*"\n'
        'echo "tool says boom" >&2\n'
        f"exit {exit_code}\n",
        encoding="utf-8",
    )
    path.chmod(0o755)
    return path


def test_run_command_captures_output(tmp_path: Path):
    result = run_command([sys.executable, "-c", "print('hello')"], cwd=tmp_path, timeout_seconds=30)

    assert result.ok
    assert result.stdout.strip() == "hello"
    assert result.elapsed_seconds >= 0


def test_check_result_raises_with_result_attached(tmp_path: Path):
    result = run_command([sys.executable, "-c", "import sys; sys.exit(2)"], cwd=tmp_path, timeout_seconds=30)

    with pytest.raises(ToolInvocationFault) as excinfo:
        check_result(result, label="demo")

    assert excinfo.value.result is result
    assert "exit code 2" in str(excinfo.value)


def test_build_java_command_jar_and_classpath_forms(tmp_path: Path):
    java = _fake_java(tmp_path / "java", exit_code=0)

    jar_cmd = build_java_command(str(java), args=["--x"], jar=tmp_path / "tool.jar")
    cp_cmd = build_java_command(
        str(java), args=["--y"], classpath=[tmp_path / "a.jar", tmp_path / "b.jar"], main_class="a.Main"
    )

    assert jar_cmd == [str(java), "-jar", str(tmp_path / "tool.jar"), "--x"]
    assert cp_cmd == [
        str(java),
        "-cp",
        os.pathsep.join([str(tmp_path / "a.jar"), str(tmp_path / "b.jar")]),
        "a.Main",
        "--y",
    ]


def test_build_java_command_requires_java_and_entry_point(tmp_path: Path):
    with pytest.raises(ConfigurationFault):
        build_java_command(str(tmp_path / "no-such-java"), args=[], jar=tmp_path / "t.jar")

    java = _fake_java(tmp_path / "java", exit_code=0)
    with pytest.raises(ConfigurationFault):
        build_java_command(str(java), args=[], main_class="a.Main")


@posix_only
def test_tool_output_goes_to_debug_log(tmp_path: Path, caplog):
    java = _fake_java(tmp_path / "java", exit_code=0)
    tool = JavaBinaryPatchTool(jar=tmp_path / "patcher.jar", toolchain=JavaToolchain(str(java), 30, tmp_path))

    with caplog.at_level(logging.DEBUG, logger="PatchedProvider"):
        tool.apply_patches(tmp_path / "base.jar", tmp_path / "joined.lzma", tmp_path / "out.jar")

    debug_lines = [r.getMessage() for r in caplog.records if r.levelno == logging.DEBUG]
    assert any("--clean" in line and "joined.lzma" in line for line in debug_lines)
    assert any("tool says boom" in line for line in debug_lines)
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]


@posix_only
def test_failing_tool_raises_tool_invocation_fault(tmp_path: Path):
    java = _fake_java(tmp_path / "java", exit_code=3)
    tool = JavaAccessTransformerTool(classpath=[tmp_path / "at.jar"], toolchain=JavaToolchain(str(java), 30, tmp_path))

    with pytest.raises(ToolInvocationFault) as excinfo:
        tool.transform(tmp_path / "in.jar", [tmp_path / "base.cfg", tmp_path / "overlay.cfg"], tmp_path / "out.jar")

    result = excinfo.value.result
    assert result.exit_code == 3
    assert result.command.count("--atFile") == 2
    assert "tool says boom" in str(excinfo.value)
