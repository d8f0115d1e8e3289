"""Backup and checkpoint models"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Any


@dataclass
class BackupSnapshot:
    """Full-tree copy of a project taken before a destructive step"""
    path: Path
    ritual_name: str = ""
    ritual_version: str = ""
    description: str = ""
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def name(self) -> str:
        return self.path.name

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'ritual_name': self.ritual_name,
            'ritual_version': self.ritual_version,
            'description': self.description,
            'created_at': self.created_at.isoformat(),
            'path': str(self.path),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: Optional[Path] = None) -> 'BackupSnapshot':
        """Create from dictionary

        Args:
            data: Sidecar content
            path: Actual location of the backup, preferred over the recorded one
        """
        created_at = data.get('created_at')
        return cls(
            path=Path(path or data['path']),
            ritual_name=data.get('ritual_name', ''),
            ritual_version=data.get('ritual_version', ''),
            description=data.get('description', ''),
            created_at=datetime.fromisoformat(created_at) if created_at else datetime.now(),
        )


@dataclass
class Checkpoint:
    """State-only snapshot"""
    id: str
    label: str
    timestamp: datetime
    state: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'id': self.id,
            'label': self.label,
            'timestamp': self.timestamp.isoformat(),
            'state': self.state,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Checkpoint':
        """Create from dictionary"""
        return cls(
            id=data['id'],
            label=data.get('label', ''),
            timestamp=datetime.fromisoformat(data['timestamp']),
            state=data.get('state') or {},
        )
