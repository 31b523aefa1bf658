"""Fault taxonomy for the patched archive pipeline.

Every fault propagates to the caller of `PatchedPipeline`; none of them is
retried automatically.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:
    from .execution.models import ExecutionResult


class PatchedProviderError(RuntimeError):
    pass


class ConfigurationFault(PatchedProviderError):
    """Overlay or fingerprint state could not be read/written, or a required setting is missing."""


class ToolInvocationFault(PatchedProviderError):
    """An external collaborator failed or produced no usable output."""

    def __init__(self, message: str, *, result: Optional["ExecutionResult"] = None):
        super().__init__(message)
        self.result = result


class ArchiveIntegrityFault(PatchedProviderError):
    """An archive, or an entry that must exist inside it, is absent or unreadable."""


class EntryRewriteFault(PatchedProviderError):
    """One or more per-entry rewrites failed during a parallel pass."""

    def __init__(self, message: str, *, failures: List[Tuple[str, BaseException]]):
        super().__init__(message)
        self.failures = failures

    @property
    def first(self) -> Tuple[str, BaseException]:
        return self.failures[0]


class StaleArtifactFault(PatchedProviderError):
    """A stage was asked to continue from an artifact that is missing.

    Within a full walk staleness is carried by `DirtyState`; this is raised
    when a stage is invoked directly without the upstream stage it builds on.
    """
