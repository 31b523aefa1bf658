from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import ConfigurationFault, ToolInvocationFault
from .models import ExecutionResult

logger = logging.getLogger(__name__)


def _which(tool: str) -> Optional[str]:
    return shutil.which(tool)


def run_command(
    command: List[str],
    *,
    cwd: Path,
    timeout_seconds: int,
) -> ExecutionResult:
    started = time.perf_counter()
    try:
        proc = subprocess.run(
            command,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=max(1, int(timeout_seconds)),
            check=False,
        )
        return ExecutionResult(
            command=list(command),
            cwd=str(cwd),
            exit_code=int(proc.returncode),
            timed_out=False,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            elapsed_seconds=time.perf_counter() - started,
        )
    except subprocess.TimeoutExpired as exc:
        return ExecutionResult(
            command=list(command),
            cwd=str(cwd),
            exit_code=None,
            timed_out=True,
            stdout=(exc.stdout or "") if isinstance(exc.stdout, str) else "",
            stderr=(exc.stderr or "") if isinstance(exc.stderr, str) else "",
            elapsed_seconds=time.perf_counter() - started,
        )


def log_output(result: ExecutionResult, sink: logging.Logger, *, label: str) -> None:
    """Forward captured tool output to a logger instead of the console."""
    for stream, text in (("stdout", result.stdout), ("stderr", result.stderr)):
        for line in text.splitlines():
            if line.strip():
                sink.debug("[%s %s] %s", label, stream, line)


def check_result(result: ExecutionResult, *, label: str) -> ExecutionResult:
    if result.ok:
        return result
    tail = (result.stderr or result.stdout).strip().splitlines()[-5:]
    detail = ("\n" + "\n".join(tail)) if tail else ""
    raise ToolInvocationFault(f"{label} failed ({result.describe()}): {' '.join(result.command)}{detail}", result=result)


def build_java_command(
    java: str,
    *,
    args: Sequence[str],
    jar: Optional[Path] = None,
    classpath: Sequence[Path] = (),
    main_class: Optional[str] = None,
) -> List[str]:
    executable = _which(java) or (java if Path(java).is_file() else None)
    if not executable:
        raise ConfigurationFault(f"Java executable '{java}' not found on PATH")
    if jar is not None:
        return [executable, "-jar", str(jar), *args]
    if not main_class:
        raise ConfigurationFault("Either a tool jar or a main class is required")
    cp = [str(p) for p in classpath]
    if not cp:
        raise ConfigurationFault(f"Empty classpath for {main_class}")
    return [executable, "-cp", os.pathsep.join(cp), main_class, *args]
