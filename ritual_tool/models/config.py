"""Tool configuration models"""

from dataclasses import dataclass, field
from typing import Dict, Any

from ..constants import (
    DEFAULT_BACKUP_KEEP,
    DEFAULT_MAX_CHECKPOINTS,
    MIGRATION_ORDER_MANIFEST,
)


@dataclass
class BackupConfig:
    """Backup retention settings"""
    keep: int = DEFAULT_BACKUP_KEEP
    auto_clean: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {'keep': self.keep, 'auto_clean': self.auto_clean}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BackupConfig':
        return cls(
            keep=data.get('keep', DEFAULT_BACKUP_KEEP),
            auto_clean=data.get('auto_clean', True),
        )


@dataclass
class CheckpointConfig:
    """Checkpoint retention settings"""
    max_checkpoints: int = DEFAULT_MAX_CHECKPOINTS

    def to_dict(self) -> Dict[str, Any]:
        return {'max_checkpoints': self.max_checkpoints}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CheckpointConfig':
        return cls(max_checkpoints=data.get('max_checkpoints', DEFAULT_MAX_CHECKPOINTS))


@dataclass
class MigrationConfig:
    """Migration execution settings"""
    order: str = MIGRATION_ORDER_MANIFEST  # "manifest" or "version"

    def to_dict(self) -> Dict[str, Any]:
        return {'order': self.order}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MigrationConfig':
        return cls(order=data.get('order', MIGRATION_ORDER_MANIFEST))


@dataclass
class RestoreConfig:
    """Rollback settings"""
    clean: bool = True  # delete files absent from the backup on rollback

    def to_dict(self) -> Dict[str, Any]:
        return {'clean': self.clean}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RestoreConfig':
        return cls(clean=data.get('clean', True))


@dataclass
class ToolConfig:
    """Project-level ritual-tool configuration (.ritual/config.yaml)"""
    backups: BackupConfig = field(default_factory=BackupConfig)
    checkpoints: CheckpointConfig = field(default_factory=CheckpointConfig)
    migrations: MigrationConfig = field(default_factory=MigrationConfig)
    restore: RestoreConfig = field(default_factory=RestoreConfig)
    log_level: str = "WARNING"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'backups': self.backups.to_dict(),
            'checkpoints': self.checkpoints.to_dict(),
            'migrations': self.migrations.to_dict(),
            'restore': self.restore.to_dict(),
            'logging': {'level': self.log_level},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ToolConfig':
        """Create from dictionary"""
        data = data or {}
        return cls(
            backups=BackupConfig.from_dict(data.get('backups') or {}),
            checkpoints=CheckpointConfig.from_dict(data.get('checkpoints') or {}),
            migrations=MigrationConfig.from_dict(data.get('migrations') or {}),
            restore=RestoreConfig.from_dict(data.get('restore') or {}),
            log_level=(data.get('logging') or {}).get('level', "WARNING"),
        )
