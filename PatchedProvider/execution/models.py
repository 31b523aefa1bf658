from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class ExecutionResult:
    command: List[str]
    cwd: str
    exit_code: Optional[int]
    timed_out: bool
    stdout: str
    stderr: str
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return (not self.timed_out) and (self.exit_code == 0)

    def describe(self) -> str:
        if self.timed_out:
            return "timed out"
        return f"exit code {self.exit_code}"
