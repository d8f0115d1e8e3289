"""Utility functions for ritual-tool"""

from .version_utils import (
    parse_version,
    is_valid_version,
    compare_versions,
    sort_versions,
    is_tool_compatible,
)
from .file_utils import (
    iter_files,
    copy_file,
    copy_tree,
    prune_empty_parents,
    calculate_directory_size,
    ensure_parent_dir,
    read_file_content,
    read_files,
    atomic_write,
)
from .formatting import format_size, format_duration, format_plan_duration, pluralize

__all__ = [
    # Versions
    "parse_version",
    "is_valid_version",
    "compare_versions",
    "sort_versions",
    "is_tool_compatible",

    # Files
    "iter_files",
    "copy_file",
    "copy_tree",
    "prune_empty_parents",
    "calculate_directory_size",
    "ensure_parent_dir",
    "read_file_content",
    "read_files",
    "atomic_write",

    # Formatting
    "format_size",
    "format_duration",
    "format_plan_duration",
    "pluralize",
]
