"""Core functionality for ritual-tool"""

from .version_classifier import VersionClassifier
from .changeset_analyzer import ChangeSetAnalyzer, is_protected, glob_match
from .dependency_validator import CycleDetector, detect_cycle, validate_no_cycles
from .deployment_planner import DeploymentPlanner, order_migrations, pending_migrations
from .migration_runner import MigrationRunner, validate_migration
from .validation_engine import ValidationEngine, ValidationResult
from .manifest_engine import ManifestEngine
from .state_store import StateStore, HistoryStore

__all__ = [
    "VersionClassifier",
    "ChangeSetAnalyzer",
    "is_protected",
    "glob_match",
    "CycleDetector",
    "detect_cycle",
    "validate_no_cycles",
    "DeploymentPlanner",
    "order_migrations",
    "pending_migrations",
    "MigrationRunner",
    "validate_migration",
    "ValidationEngine",
    "ValidationResult",
    "ManifestEngine",
    "StateStore",
    "HistoryStore",
]
