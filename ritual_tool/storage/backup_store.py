# ritual_tool/storage/backup_store.py
"""Full-tree project backups"""

import json
import logging
import shutil
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..api.exceptions import BackupError, BackupNotFoundError
from ..constants import (
    RITUAL_DIR,
    BACKUPS_DIR,
    CHECKPOINTS_DIR,
    BACKUP_DIR_PREFIX,
    BACKUP_TIMESTAMP_FORMAT,
    BACKUP_METADATA_FILE,
    BACKUP_FILES_DIR,
)
from ..models.snapshot import BackupSnapshot
from ..utils.file_utils import (
    atomic_write,
    calculate_directory_size,
    copy_tree,
    iter_files,
    prune_empty_parents,
)

logger = logging.getLogger(__name__)


def format_backup_name(timestamp: datetime) -> str:
    """Directory name for a backup taken at timestamp (millisecond resolution)"""
    millis = timestamp.microsecond // 1000
    return f"{BACKUP_DIR_PREFIX}{timestamp.strftime(BACKUP_TIMESTAMP_FORMAT)}.{millis:03d}"


class BackupStore:
    """Create, list, restore and prune backups of a project

    Backups live in ``<project_root>/.ritual/backups/backup-<timestamp>``.
    The copied tree sits under ``files/`` next to a ``backup.json`` sidecar
    describing it.
    """

    def __init__(self, project_root: Path):
        self.project_root = Path(project_root)
        self.backups_dir = self.project_root / RITUAL_DIR / BACKUPS_DIR

    def create_backup(self, project_dir: Optional[Path] = None) -> Path:
        """Back up project_dir without metadata"""
        return self.create_backup_with_metadata(project_dir, {})

    def create_backup_with_metadata(self, project_dir: Optional[Path] = None,
                                    metadata: Optional[Dict[str, Any]] = None) -> Path:
        """
        Copy the whole project into a new backup directory

        The backup store itself is never copied.

        Args:
            project_dir: Directory to back up (defaults to the project root)
            metadata: ritual_name, ritual_version and description for the sidecar

        Returns:
            Path of the new backup

        Raises:
            OSError: When copying fails; the partial backup is left in place
        """
        project_dir = Path(project_dir or self.project_root)
        metadata = metadata or {}

        self.backups_dir.mkdir(parents=True, exist_ok=True)
        created_at, backup_path = self._allocate_backup_path()

        logger.info("Creating backup of %s at %s", project_dir, backup_path)
        copied = copy_tree(project_dir, backup_path / BACKUP_FILES_DIR, exclude_dirs=[self.backups_dir])

        snapshot = BackupSnapshot(
            path=backup_path.resolve(),
            ritual_name=metadata.get('ritual_name', ''),
            ritual_version=metadata.get('ritual_version', ''),
            description=metadata.get('description', ''),
            created_at=created_at,
        )
        atomic_write(
            backup_path / BACKUP_METADATA_FILE,
            json.dumps(snapshot.to_dict(), indent=2)
        )

        logger.debug("Backup %s holds %d files", backup_path.name, len(copied))
        return backup_path

    def _allocate_backup_path(self):
        # Two backups within the same millisecond get consecutive stamps
        timestamp = datetime.now()
        while True:
            path = self.backups_dir / format_backup_name(timestamp)
            try:
                path.mkdir()
                return timestamp, path
            except FileExistsError:
                timestamp += timedelta(milliseconds=1)

    def restore_from_backup(self, backup_path: Path, target_dir: Optional[Path] = None,
                            clean: bool = False) -> List[str]:
        """
        Copy a backup back over target_dir

        Files from the backup overwrite their counterparts. Without ``clean``
        files created after the backup are left in place; with ``clean`` they
        are deleted so the tree matches the backup, except for the backup and
        checkpoint stores. Running the same restore twice is harmless.

        Args:
            backup_path: Backup directory
            target_dir: Directory to restore into (defaults to the project root)
            clean: Remove files absent from the backup

        Returns:
            Relative paths of restored files

        Raises:
            BackupNotFoundError: If backup_path holds no backed-up tree
            OSError: When copying fails
        """
        backup_path = Path(backup_path)
        target_dir = Path(target_dir or self.project_root)

        files_dir = backup_path / BACKUP_FILES_DIR
        if not files_dir.is_dir():
            raise BackupNotFoundError(str(backup_path))

        logger.info("Restoring %s into %s%s", backup_path.name, target_dir, " (clean)" if clean else "")
        restored = copy_tree(files_dir, target_dir)

        if clean:
            removed = self._remove_extra_files(target_dir, set(restored), backup_path)
            logger.info("Removed %d files not present in backup", len(removed))

        return restored

    def _remove_extra_files(self, target_dir: Path, keep: set, backup_path: Path) -> List[str]:
        target_dir = target_dir.resolve()
        ritual_dir = target_dir / RITUAL_DIR
        protected_dirs = [
            ritual_dir / BACKUPS_DIR,
            ritual_dir / CHECKPOINTS_DIR,
            backup_path.resolve(),
        ]

        removed = []
        for path in iter_files(target_dir, exclude_dirs=protected_dirs):
            relative = path.relative_to(target_dir).as_posix()
            if relative not in keep:
                path.unlink()
                prune_empty_parents(path, target_dir)
                removed.append(relative)

        return removed

    def list_backups(self, project_dir: Optional[Path] = None) -> List[BackupSnapshot]:
        """
        List backups, newest first

        A backup whose sidecar cannot be read is still listed, dated by its
        directory modification time.
        """
        backups_dir = self._backups_dir_for(project_dir)
        if not backups_dir.is_dir():
            return []

        snapshots = []
        for entry in backups_dir.iterdir():
            if not entry.is_dir() or not entry.name.startswith(BACKUP_DIR_PREFIX):
                continue
            snapshots.append(self._load_snapshot(entry))

        snapshots.sort(key=lambda s: (s.created_at, s.name), reverse=True)
        return snapshots

    def _load_snapshot(self, backup_path: Path) -> BackupSnapshot:
        try:
            return self.read_backup_metadata(backup_path)
        except (OSError, ValueError, KeyError) as e:
            logger.debug("Unreadable metadata for %s (%s), using directory time", backup_path.name, e)
            return BackupSnapshot(
                path=backup_path.resolve(),
                created_at=datetime.fromtimestamp(backup_path.stat().st_mtime),
            )

    def read_backup_metadata(self, backup_path: Path) -> BackupSnapshot:
        """
        Read a backup's sidecar

        Raises:
            OSError: If the sidecar cannot be read
            ValueError: If it is not valid JSON
        """
        backup_path = Path(backup_path)
        with open(backup_path / BACKUP_METADATA_FILE, 'r') as f:
            data = json.load(f)
        return BackupSnapshot.from_dict(data, path=backup_path.resolve())

    def find_backup(self, reference: str, project_dir: Optional[Path] = None) -> Path:
        """
        Resolve a backup by full path or by directory name

        Raises:
            BackupNotFoundError: If nothing matches
        """
        candidate = Path(reference)
        if candidate.is_dir():
            return candidate

        by_name = self._backups_dir_for(project_dir) / reference
        if by_name.is_dir():
            return by_name

        raise BackupNotFoundError(reference)

    def clean_old_backups(self, project_dir: Optional[Path] = None, keep_count: int = 5) -> List[Path]:
        """
        Delete every backup beyond the keep_count newest

        Returns:
            Paths of deleted backups
        """
        if keep_count < 0:
            raise ValueError(f"keep_count must not be negative: {keep_count}")

        removed = []
        for snapshot in self.list_backups(project_dir)[keep_count:]:
            logger.info("Removing old backup %s", snapshot.name)
            try:
                shutil.rmtree(snapshot.path)
            except OSError as e:
                raise BackupError(f"Failed to remove backup {snapshot.path}: {e}") from e
            removed.append(snapshot.path)
        return removed

    def get_backup_size(self, backup_path: Path) -> int:
        """Total size in bytes of the files in a backup"""
        backup_path = Path(backup_path)
        if not backup_path.is_dir():
            raise BackupNotFoundError(str(backup_path))
        return calculate_directory_size(backup_path)

    def _backups_dir_for(self, project_dir: Optional[Path]) -> Path:
        if project_dir is None:
            return self.backups_dir
        return Path(project_dir) / RITUAL_DIR / BACKUPS_DIR
