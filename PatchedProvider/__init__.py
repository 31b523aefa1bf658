"""
Patched archive provider.

Builds a merged, binary-patched, remapped and access-widened archive from a
client and a server archive, caching every stage across a shared user cache
and a per-project cache.
"""

from .errors import (
    ArchiveIntegrityFault,
    ConfigurationFault,
    EntryRewriteFault,
    PatchedProviderError,
    StaleArtifactFault,
    ToolInvocationFault,
)
from .pipeline import DirtyBaseline, DirtyState, PatchedPipeline, PipelineConfig, ToolSet, load_config

__version__ = "0.1.0"
__all__ = [
    'ArchiveIntegrityFault', 'ConfigurationFault', 'EntryRewriteFault',
    'PatchedProviderError', 'StaleArtifactFault', 'ToolInvocationFault',
    'DirtyBaseline', 'DirtyState', 'PatchedPipeline', 'PipelineConfig', 'ToolSet', 'load_config',
    '__version__'
]
