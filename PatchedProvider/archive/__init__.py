"""Archive mounting, entry merging and parallel entry rewriting."""

from .merge import (
    MergePolicy,
    MergeSummary,
    copy_all,
    copy_missing_classes,
    copy_non_class_files,
    copy_subtree,
    injection_filter,
    is_class_entry,
    merge_archives,
    subtree,
)
from .mount import MountedArchive, extract_entry, read_entry, read_json_entry
from .rewrite import RewriteSummary, rewrite_entries

__all__ = [
	"MergePolicy",
	"MergeSummary",
	"MountedArchive",
	"RewriteSummary",
	"copy_all",
	"copy_missing_classes",
	"copy_non_class_files",
	"copy_subtree",
	"extract_entry",
	"injection_filter",
	"is_class_entry",
	"merge_archives",
	"read_entry",
	"read_json_entry",
	"rewrite_entries",
	"subtree",
]
