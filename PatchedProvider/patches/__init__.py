"""Binary patch set extraction."""

from .provider import JOINED_PATCHES_ENTRY, patches_path, provide_patches

__all__ = ["JOINED_PATCHES_ENTRY", "patches_path", "provide_patches"]
