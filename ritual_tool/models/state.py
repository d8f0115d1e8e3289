"""Project state and deployment history models"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Any, Union

from ..constants import DeploymentStatus, MAX_HISTORY_ENTRIES


def _to_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class AppliedMigration:
    """Durable record of a migration applied to the project"""
    version: str
    applied_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {'version': self.version, 'applied_at': _isoformat(self.applied_at)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppliedMigration':
        """Create from dictionary"""
        return cls(
            version=str(data['version']),
            applied_at=_to_datetime(data.get('applied_at')) or datetime.now(),
        )


@dataclass
class ProjectState:
    """Ritual state of a project, persisted as .ritual/state.yaml"""
    ritual_name: str
    ritual_version: str
    installed_at: datetime = field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None
    applied_migrations: List[AppliedMigration] = field(default_factory=list)
    generated_files: List[str] = field(default_factory=list)
    protected_files: List[str] = field(default_factory=list)

    def add_migration(self, version: str) -> None:
        """Mark a migration target version as applied"""
        if not self.is_migration_applied(version):
            self.applied_migrations.append(AppliedMigration(version=version))

    def is_migration_applied(self, version: str) -> bool:
        return any(m.version == version for m in self.applied_migrations)

    def applied_versions(self) -> List[str]:
        return [m.version for m in self.applied_migrations]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            'ritual_name': self.ritual_name,
            'ritual_version': self.ritual_version,
            'installed_at': _isoformat(self.installed_at),
            'applied_migrations': [m.to_dict() for m in self.applied_migrations],
            'generated_files': list(self.generated_files),
            'protected_files': list(self.protected_files),
        }
        if self.updated_at:
            data['updated_at'] = _isoformat(self.updated_at)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectState':
        """Create from dictionary"""
        return cls(
            ritual_name=str(data.get('ritual_name', '')),
            ritual_version=str(data.get('ritual_version', '')),
            installed_at=_to_datetime(data.get('installed_at')) or datetime.now(),
            updated_at=_to_datetime(data.get('updated_at')),
            applied_migrations=[
                AppliedMigration.from_dict(m) for m in data.get('applied_migrations') or []
            ],
            generated_files=list(data.get('generated_files') or []),
            protected_files=list(data.get('protected_files') or []),
        )


@dataclass
class DeploymentRecord:
    """One update attempt in the project's history"""
    from_version: str
    to_version: str
    status: DeploymentStatus
    message: str = ""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    duration: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'timestamp': _isoformat(self.timestamp),
            'from_version': self.from_version,
            'to_version': self.to_version,
            'status': self.status.value,
            'message': self.message,
            'errors': list(self.errors),
            'warnings': list(self.warnings),
            'duration': self.duration,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DeploymentRecord':
        """Create from dictionary"""
        return cls(
            from_version=str(data.get('from_version', '')),
            to_version=str(data.get('to_version', '')),
            status=DeploymentStatus(data.get('status', DeploymentStatus.FAILURE.value)),
            message=data.get('message', ''),
            errors=list(data.get('errors') or []),
            warnings=list(data.get('warnings') or []),
            duration=float(data.get('duration') or 0.0),
            timestamp=_to_datetime(data.get('timestamp')) or datetime.now(),
        )


@dataclass
class DeploymentHistory:
    """Capped log of update attempts, oldest evicted first"""
    deployments: List[DeploymentRecord] = field(default_factory=list)
    max_entries: int = MAX_HISTORY_ENTRIES

    def add(self, record: DeploymentRecord) -> None:
        self.deployments.append(record)
        if len(self.deployments) > self.max_entries:
            self.deployments = self.deployments[-self.max_entries:]

    def latest(self, limit: Optional[int] = None) -> List[DeploymentRecord]:
        """Records newest first"""
        records = list(reversed(self.deployments))
        return records[:limit] if limit else records

    def latest_successful(self) -> Optional[DeploymentRecord]:
        for record in reversed(self.deployments):
            if record.status == DeploymentStatus.SUCCESS:
                return record
        return None

    def failures(self) -> List[DeploymentRecord]:
        return [r for r in self.deployments if r.status == DeploymentStatus.FAILURE]

    def rollbacks(self) -> List[DeploymentRecord]:
        return [r for r in self.deployments if r.status == DeploymentStatus.ROLLBACK]

    def __len__(self) -> int:
        return len(self.deployments)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {'deployments': [r.to_dict() for r in self.deployments]}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'DeploymentHistory':
        """Create from dictionary"""
        data = data or {}
        history = cls()
        for item in data.get('deployments') or []:
            history.add(DeploymentRecord.from_dict(item))
        return history
