"""Change set model"""

from dataclasses import dataclass, field
from typing import Dict, List, Any


@dataclass
class ChangeSet:
    """Classification of file names between two file maps

    Every name from either map lands in exactly one list.
    """
    added: List[str] = field(default_factory=list)
    modified: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.modified or self.deleted or self.conflicts)

    @property
    def total_changes(self) -> int:
        return len(self.added) + len(self.modified) + len(self.deleted) + len(self.conflicts)

    def summary(self) -> Dict[str, int]:
        """Counts per category, unchanged files excluded from the total"""
        return {
            'total_changes': self.total_changes,
            'added': len(self.added),
            'modified': len(self.modified),
            'deleted': len(self.deleted),
            'conflicts': len(self.conflicts),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'added': list(self.added),
            'modified': list(self.modified),
            'deleted': list(self.deleted),
            'unchanged': list(self.unchanged),
            'conflicts': list(self.conflicts),
        }
