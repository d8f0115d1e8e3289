# ritual_tool/storage/checkpoint_store.py
"""State-only checkpoints"""

import json
import logging
import re
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..api.exceptions import CheckpointNotFoundError
from ..constants import RITUAL_DIR, CHECKPOINTS_DIR, DEFAULT_MAX_CHECKPOINTS
from ..core.state_store import StateStore
from ..models.snapshot import Checkpoint
from ..models.state import ProjectState
from ..utils.file_utils import atomic_write

logger = logging.getLogger(__name__)

_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class CheckpointStore:
    """JSON checkpoints of project state in .ritual/checkpoints

    Every creation prunes the store down to ``max_checkpoints``.
    """

    def __init__(self, project_root: Path,
                 max_checkpoints: int = DEFAULT_MAX_CHECKPOINTS,
                 state_store: Optional[StateStore] = None):
        self.project_root = Path(project_root)
        self.checkpoints_dir = self.project_root / RITUAL_DIR / CHECKPOINTS_DIR
        self.max_checkpoints = max_checkpoints
        self.state_store = state_store or StateStore(self.project_root)

    def create_checkpoint(self, label: str, state: Dict[str, Any]) -> Checkpoint:
        """
        Save a checkpoint

        Args:
            label: Human-readable label, used for lookups
            state: JSON-serializable state to embed

        Returns:
            The stored Checkpoint
        """
        self.checkpoints_dir.mkdir(parents=True, exist_ok=True)

        stamp = time.time_ns()
        safe_label = _UNSAFE_ID_CHARS.sub('-', label).strip('-') or "checkpoint"
        while self._path_for(f"{stamp}-{safe_label}").exists():
            stamp += 1

        checkpoint = Checkpoint(
            id=f"{stamp}-{safe_label}",
            label=label,
            timestamp=datetime.now(),
            state=state,
        )
        atomic_write(self._path_for(checkpoint.id), json.dumps(checkpoint.to_dict(), indent=2))
        logger.info("Created checkpoint %s", checkpoint.id)

        self.clean_old_checkpoints(self.max_checkpoints)
        return checkpoint

    def list_checkpoints(self) -> List[Checkpoint]:
        """All readable checkpoints, newest first"""
        if not self.checkpoints_dir.is_dir():
            return []

        checkpoints = []
        for path in self.checkpoints_dir.glob("*.json"):
            try:
                with open(path, 'r') as f:
                    checkpoints.append(Checkpoint.from_dict(json.load(f)))
            except (OSError, ValueError, KeyError) as e:
                logger.warning("Skipping unreadable checkpoint %s: %s", path.name, e)

        checkpoints.sort(key=lambda c: (c.timestamp, c.id), reverse=True)
        return checkpoints

    def get_checkpoint(self, checkpoint_id: str) -> Checkpoint:
        """
        Raises:
            CheckpointNotFoundError: If no checkpoint has that id
        """
        path = self._path_for(checkpoint_id)
        if not path.is_file():
            raise CheckpointNotFoundError(checkpoint_id)

        with open(path, 'r') as f:
            return Checkpoint.from_dict(json.load(f))

    def get_checkpoint_by_label(self, label: str) -> Checkpoint:
        """
        Most recent checkpoint with the given label

        Raises:
            CheckpointNotFoundError: If no checkpoint has that label
        """
        for checkpoint in self.list_checkpoints():
            if checkpoint.label == label:
                return checkpoint
        raise CheckpointNotFoundError(label)

    def find_checkpoint(self, reference: str) -> Checkpoint:
        """Look a checkpoint up by id, falling back to its label"""
        try:
            return self.get_checkpoint(reference)
        except CheckpointNotFoundError:
            return self.get_checkpoint_by_label(reference)

    def restore_checkpoint(self, checkpoint_id: str) -> Checkpoint:
        """Write a checkpoint's embedded state back as the project state"""
        checkpoint = self.get_checkpoint(checkpoint_id)
        self.state_store.save(ProjectState.from_dict(checkpoint.state))
        logger.info("Restored state from checkpoint %s", checkpoint.id)
        return checkpoint

    def delete_checkpoint(self, checkpoint_id: str) -> None:
        path = self._path_for(checkpoint_id)
        if not path.is_file():
            raise CheckpointNotFoundError(checkpoint_id)
        path.unlink()

    def clean_old_checkpoints(self, keep: int) -> int:
        """Delete all but the keep newest checkpoints, returning how many went"""
        removed = 0
        for checkpoint in self.list_checkpoints()[max(keep, 0):]:
            self._path_for(checkpoint.id).unlink()
            removed += 1
        if removed:
            logger.debug("Pruned %d old checkpoints", removed)
        return removed

    def _path_for(self, checkpoint_id: str) -> Path:
        return self.checkpoints_dir / f"{checkpoint_id}.json"
