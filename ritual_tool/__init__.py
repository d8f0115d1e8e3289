"""Ritual Tool - Keep projects generated from rituals up to date.

A ritual is a versioned project template. This tool plans and applies
updates between ritual versions: it diffs template files, runs migrations,
backs the project up beforehand and restores it when an update fails.
"""

from .__version__ import __version__, __version_info__, __author__, __email__, __license__

# Core API
from .core import (
    VersionClassifier,
    ChangeSetAnalyzer,
    CycleDetector,
    DeploymentPlanner,
    MigrationRunner,
    ValidationEngine,
    ManifestEngine,
    StateStore,
    HistoryStore,
)
from .storage import BackupStore, CheckpointStore
from .services import UpdateService, ConfigService

# Data models
from .models import (
    SemanticVersion,
    RitualManifest,
    Migration,
    MigrationHandler,
    ChangeSet,
    DeploymentPlan,
    ProjectState,
    UpdateResult,
)

# Exceptions
from .api.exceptions import (
    RitualToolError,
    ParseError,
    ValidationError,
    CircularDependencyError,
    MigrationError,
    BackupError,
    BackupNotFoundError,
    ConfigError,
)

__all__ = [
    # Version information
    "__version__",
    "__version_info__",
    "__author__",
    "__email__",
    "__license__",

    # Main classes
    "VersionClassifier",
    "ChangeSetAnalyzer",
    "CycleDetector",
    "DeploymentPlanner",
    "MigrationRunner",
    "ValidationEngine",
    "ManifestEngine",
    "StateStore",
    "HistoryStore",
    "BackupStore",
    "CheckpointStore",
    "UpdateService",
    "ConfigService",

    # Data models
    "SemanticVersion",
    "RitualManifest",
    "Migration",
    "MigrationHandler",
    "ChangeSet",
    "DeploymentPlan",
    "ProjectState",
    "UpdateResult",

    # Exceptions
    "RitualToolError",
    "ParseError",
    "ValidationError",
    "CircularDependencyError",
    "MigrationError",
    "BackupError",
    "BackupNotFoundError",
    "ConfigError",
]
