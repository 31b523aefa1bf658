"""Patched archive pipeline.

Sequences the six stages over the two cache tiers; see `PatchedPipeline`.
"""

from .models import PipelineConfig, ToolSet, load_config
from .pipeline import PatchedPipeline
from .state import STAGES, DirtyBaseline, DirtyState

__all__ = [
    "DirtyBaseline",
    "DirtyState",
    "PatchedPipeline",
    "PipelineConfig",
    "STAGES",
    "ToolSet",
    "load_config",
]
