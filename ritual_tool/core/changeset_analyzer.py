# ritual_tool/core/changeset_analyzer.py
"""Change set analysis between current and target file contents"""

import fnmatch
import posixpath
from typing import Dict, Iterable, List, Optional, Union

from ..models.changeset import ChangeSet

FileContent = Union[str, bytes]


def glob_match(pattern: str, name: str) -> bool:
    """
    Match a name against a glob pattern segment by segment

    Unlike plain fnmatch, ``*`` and ``?`` never match across a ``/``, so
    ``config/*.yaml`` matches ``config/app.yaml`` but not
    ``config/env/app.yaml``.

    Args:
        pattern: Glob pattern (``*``, ``?`` and ``[...]`` supported)
        name: Slash separated file name

    Returns:
        True if the whole name matches
    """
    pattern_parts = pattern.split('/')
    name_parts = name.split('/')
    if len(pattern_parts) != len(name_parts):
        return False
    return all(
        fnmatch.fnmatchcase(part, glob)
        for part, glob in zip(name_parts, pattern_parts)
    )


def is_protected(name: str, patterns: Iterable[str]) -> bool:
    """
    Check whether a file name is covered by any protected pattern

    A pattern matches by exact name, as a glob against the full name, or as a
    glob against the base name (so ``*.env`` protects ``config/.env``).
    """
    base_name = posixpath.basename(name)
    for pattern in patterns:
        if not pattern:
            continue
        if pattern == name:
            return True
        if glob_match(pattern, name):
            return True
        if glob_match(pattern, base_name):
            return True
    return False


class ChangeSetAnalyzer:
    """Compare two name -> content maps

    Pure: callers load the file contents, nothing here touches the disk.
    """

    def __init__(self, protected_patterns: Optional[Iterable[str]] = None):
        self.protected_patterns: List[str] = list(protected_patterns or [])

    def diff(self,
             current_files: Dict[str, FileContent],
             target_files: Dict[str, FileContent],
             protected_patterns: Optional[Iterable[str]] = None) -> ChangeSet:
        """
        Classify every file name of both maps

        Args:
            current_files: Files as they are in the project
            target_files: Files as the target ritual version produces them
            protected_patterns: Patterns for files that must not be silently
                overwritten; defaults to the analyzer's own patterns

        Returns:
            ChangeSet with each list sorted
        """
        patterns = self.protected_patterns if protected_patterns is None else list(protected_patterns)
        changes = ChangeSet()

        for name, content in target_files.items():
            if name not in current_files:
                changes.added.append(name)
            elif current_files[name] == content:
                changes.unchanged.append(name)
            elif is_protected(name, patterns):
                changes.conflicts.append(name)
            else:
                changes.modified.append(name)

        for name in current_files:
            if name not in target_files:
                changes.deleted.append(name)

        changes.added.sort()
        changes.modified.sort()
        changes.deleted.sort()
        changes.unchanged.sort()
        changes.conflicts.sort()

        return changes


def diff(current_files: Dict[str, FileContent],
         target_files: Dict[str, FileContent],
         protected_patterns: Optional[Iterable[str]] = None) -> ChangeSet:
    """Module level shortcut for ``ChangeSetAnalyzer().diff``"""
    return ChangeSetAnalyzer().diff(current_files, target_files, protected_patterns or [])
