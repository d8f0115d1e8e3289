# ritual_tool/core/state_store.py
"""Persistent project state: ritual state, protected list and update history"""

import logging
from pathlib import Path
from typing import List, Optional

import yaml

from ..api.exceptions import StateNotFoundError, RitualToolError
from ..constants import RITUAL_DIR, STATE_FILE, HISTORY_FILE, PROTECTED_FILE
from ..models.state import ProjectState, DeploymentHistory, DeploymentRecord
from ..utils.file_utils import atomic_write

logger = logging.getLogger(__name__)


class StateStore:
    """Load and save .ritual/state.yaml and .ritual/protected.txt"""

    def __init__(self, project_root: Path):
        self.project_root = Path(project_root)
        self.ritual_dir = self.project_root / RITUAL_DIR
        self.state_path = self.ritual_dir / STATE_FILE
        self.protected_path = self.ritual_dir / PROTECTED_FILE

    def exists(self) -> bool:
        return self.state_path.is_file()

    def load(self) -> ProjectState:
        """
        Load project state

        Raises:
            StateNotFoundError: If the project has no state file
            RitualToolError: If the state file is not a mapping
        """
        if not self.exists():
            raise StateNotFoundError(str(self.state_path))

        with open(self.state_path, 'r') as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise RitualToolError(f"Invalid state file: {self.state_path}")

        return ProjectState.from_dict(data)

    def save(self, state: ProjectState) -> None:
        """Write project state atomically"""
        content = yaml.dump(state.to_dict(), default_flow_style=False, sort_keys=False)
        atomic_write(self.state_path, content)
        logger.debug("Saved state %s@%s", state.ritual_name, state.ritual_version)

    def load_protected_patterns(self) -> List[str]:
        """Patterns from .ritual/protected.txt, comments and blank lines skipped"""
        if not self.protected_path.is_file():
            return []

        patterns = []
        for line in self.protected_path.read_text().splitlines():
            line = line.strip()
            if line and not line.startswith('#'):
                patterns.append(line)
        return patterns

    def save_protected_patterns(self, patterns: List[str]) -> None:
        lines = ["# Files that ritual updates must not overwrite"]
        lines.extend(patterns)
        atomic_write(self.protected_path, "\n".join(lines) + "\n")

    def protected_patterns(self, state: Optional[ProjectState] = None) -> List[str]:
        """Protected patterns from state and protected.txt, de-duplicated in order"""
        patterns = list(state.protected_files) if state else []
        patterns.extend(self.load_protected_patterns())
        return list(dict.fromkeys(patterns))


class HistoryStore:
    """Load and save the capped update history (.ritual/history.yaml)"""

    def __init__(self, project_root: Path):
        self.project_root = Path(project_root)
        self.history_path = self.project_root / RITUAL_DIR / HISTORY_FILE

    def load(self) -> DeploymentHistory:
        """Load history, empty when the file does not exist yet"""
        if not self.history_path.is_file():
            return DeploymentHistory()

        with open(self.history_path, 'r') as f:
            data = yaml.safe_load(f)

        return DeploymentHistory.from_dict(data if isinstance(data, dict) else None)

    def save(self, history: DeploymentHistory) -> None:
        content = yaml.dump(history.to_dict(), default_flow_style=False, sort_keys=False)
        atomic_write(self.history_path, content)

    def append(self, record: DeploymentRecord) -> DeploymentHistory:
        """Add a record and persist, evicting the oldest beyond the cap"""
        history = self.load()
        history.add(record)
        self.save(history)
        logger.debug("Recorded %s deployment %s -> %s",
                     record.status.value, record.from_version, record.to_version)
        return history
