# ritual_tool/services/config_service.py
"""Configuration management service"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from ..api.exceptions import ConfigError
from ..constants import (
    RITUAL_DIR,
    CONFIG_FILE,
    MIGRATION_ORDERS,
    ENV_LOG_LEVEL,
    ENV_BACKUP_KEEP,
    ENV_MAX_CHECKPOINTS,
)
from ..models.config import ToolConfig
from ..utils.file_utils import atomic_write

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigService:
    """Service for managing project configuration"""

    def __init__(self, project_root: Path):
        """Initialize config service

        Args:
            project_root: Project root directory
        """
        self.project_root = Path(project_root)
        self.config_path = self.project_root / RITUAL_DIR / CONFIG_FILE
        self._config: Optional[ToolConfig] = None

    @property
    def config(self) -> ToolConfig:
        """Get current configuration (lazy load)"""
        if self._config is None:
            self.load_config()
        return self._config

    def load_config(self) -> ToolConfig:
        """Load configuration from file, falling back to defaults

        Environment variables override file values.

        Returns:
            Loaded configuration

        Raises:
            ConfigError: If the file or an override is invalid
        """
        data = {}
        if self.config_path.exists():
            with open(self.config_path, 'r') as f:
                content = f.read()

            # Simple environment variable expansion
            content = os.path.expandvars(content)

            try:
                data = yaml.safe_load(content) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid configuration file {self.config_path}: {e}") from e

            if not isinstance(data, dict):
                raise ConfigError(f"Invalid configuration file {self.config_path}: expected a mapping")

        config = ToolConfig.from_dict(data)
        self._apply_env_overrides(config)
        self._validate(config)

        self._config = config
        return self._config

    def _apply_env_overrides(self, config: ToolConfig) -> None:
        if os.environ.get(ENV_LOG_LEVEL):
            config.log_level = os.environ[ENV_LOG_LEVEL].upper()
        if os.environ.get(ENV_BACKUP_KEEP):
            config.backups.keep = self._env_int(ENV_BACKUP_KEEP)
        if os.environ.get(ENV_MAX_CHECKPOINTS):
            config.checkpoints.max_checkpoints = self._env_int(ENV_MAX_CHECKPOINTS)

    @staticmethod
    def _env_int(name: str) -> int:
        try:
            return int(os.environ[name])
        except ValueError:
            raise ConfigError(f"{name} must be an integer, got '{os.environ[name]}'")

    def _validate(self, config: ToolConfig) -> None:
        if not isinstance(config.backups.keep, int) or config.backups.keep < 1:
            raise ConfigError(f"backups.keep must be a positive integer, got {config.backups.keep!r}")
        if not isinstance(config.checkpoints.max_checkpoints, int) or config.checkpoints.max_checkpoints < 1:
            raise ConfigError(
                "checkpoints.max_checkpoints must be a positive integer, "
                f"got {config.checkpoints.max_checkpoints!r}"
            )
        if config.migrations.order not in MIGRATION_ORDERS:
            raise ConfigError(
                f"migrations.order must be one of {', '.join(MIGRATION_ORDERS)}, "
                f"got '{config.migrations.order}'"
            )
        if str(config.log_level).upper() not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {config.log_level}")

    def save_config(self, config: Optional[ToolConfig] = None) -> Path:
        """Save configuration to file

        Args:
            config: Configuration to save (uses current if not provided)
        """
        if config:
            self._config = config

        if not self._config:
            raise ValueError("No configuration to save")

        content = yaml.dump(self._config.to_dict(), default_flow_style=False, sort_keys=False)
        atomic_write(self.config_path, content)
        logger.info("Configuration saved to %s", self.config_path)
        return self.config_path
