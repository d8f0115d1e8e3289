# ritual_tool/api/__init__.py
"""API layer for ritual-tool"""

from .exceptions import (
    RitualToolError,
    ParseError,
    ValidationError,
    CircularDependencyError,
    ManifestError,
    ManifestNotFoundError,
    ConfigError,
    MigrationError,
    BackupError,
    BackupNotFoundError,
    CheckpointNotFoundError,
    StateNotFoundError,
    HookError,
)

__all__ = [
    "RitualToolError",
    "ParseError",
    "ValidationError",
    "CircularDependencyError",
    "ManifestError",
    "ManifestNotFoundError",
    "ConfigError",
    "MigrationError",
    "BackupError",
    "BackupNotFoundError",
    "CheckpointNotFoundError",
    "StateNotFoundError",
    "HookError",
]
