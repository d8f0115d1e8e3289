# ritual_tool/models/__init__.py
"""Data models for ritual-tool"""

from .version import SemanticVersion, UpdateInfo
from .migration import Migration, MigrationHandler, MigrationRecord
from .manifest import RitualManifest, FileMapping, Compatibility
from .changeset import ChangeSet
from .plan import DeploymentPlan, DeploymentStep, Conflict
from .state import ProjectState, AppliedMigration, DeploymentRecord, DeploymentHistory
from .snapshot import BackupSnapshot, Checkpoint
from .result import OperationStatus, ErrorDetail, Result, UpdateResult
from .config import ToolConfig, BackupConfig, CheckpointConfig, MigrationConfig, RestoreConfig

__all__ = [
    # Version models
    "SemanticVersion",
    "UpdateInfo",

    # Manifest models
    "RitualManifest",
    "FileMapping",
    "Compatibility",
    "Migration",
    "MigrationHandler",
    "MigrationRecord",

    # Planning models
    "ChangeSet",
    "DeploymentPlan",
    "DeploymentStep",
    "Conflict",

    # State models
    "ProjectState",
    "AppliedMigration",
    "DeploymentRecord",
    "DeploymentHistory",
    "BackupSnapshot",
    "Checkpoint",

    # Result models
    "OperationStatus",
    "ErrorDetail",
    "Result",
    "UpdateResult",

    # Config models
    "ToolConfig",
    "BackupConfig",
    "CheckpointConfig",
    "MigrationConfig",
    "RestoreConfig",
]
