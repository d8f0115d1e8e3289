"""Snapshot storage for ritual-tool"""

from .backup_store import BackupStore, format_backup_name
from .checkpoint_store import CheckpointStore

__all__ = [
    "BackupStore",
    "CheckpointStore",
    "format_backup_name",
]
