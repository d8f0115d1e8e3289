"""Global constants for ritual-tool"""

from enum import Enum
import re

APP_NAME = "ritual-tool"

# Project layout
RITUAL_DIR = ".ritual"
STATE_FILE = "state.yaml"
HISTORY_FILE = "history.yaml"
PROTECTED_FILE = "protected.txt"
CONFIG_FILE = "config.yaml"
INSTALLED_MANIFEST_FILE = "ritual.yaml"
BACKUPS_DIR = "backups"
CHECKPOINTS_DIR = "checkpoints"
MANIFEST_FILE_NAME = "ritual.yaml"

# Backups
BACKUP_DIR_PREFIX = "backup-"
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"
BACKUP_METADATA_FILE = "backup.json"
BACKUP_FILES_DIR = "files"
DEFAULT_BACKUP_KEEP = 5

# Checkpoints
DEFAULT_MAX_CHECKPOINTS = 10
PRE_UPDATE_CHECKPOINT_LABEL = "pre-update-{version}"

# History
MAX_HISTORY_ENTRIES = 100

# Migrations
SCRIPT_PERMISSIONS = 0o750
MIGRATION_ORDER_MANIFEST = "manifest"
MIGRATION_ORDER_VERSION = "version"
MIGRATION_ORDERS = [MIGRATION_ORDER_MANIFEST, MIGRATION_ORDER_VERSION]

# Default per-step duration estimates (seconds)
DEFAULT_STEP_DURATIONS = {
    "backup": 5,
    "migration": 10,
    "update_files": 2,
    "run_hooks": 3,
    "validation": 2,
}
DEFAULT_STEP_DURATION = 1

# Planner messages
BREAKING_CHANGE_REASON = "Major version change from {current} to {target} indicates breaking changes"
BREAKING_CHANGE_RESOLUTION = "Review changelog and test thoroughly"
MANUAL_MODIFICATION_REASON = "File was manually modified and will be updated"
MANUAL_MODIFICATION_RESOLUTION = "Review changes and merge manually"
PROTECTED_FILE_REASON = "File is protected and differs from the template"
PROTECTED_FILE_RESOLUTION = "Merge template changes into the protected file manually"


class UpdateType(Enum):
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"


class StepType(Enum):
    BACKUP = "backup"
    UPDATE_FILES = "update_files"
    MIGRATION = "migration"
    RUN_HOOKS = "run_hooks"
    VALIDATION = "validation"
    ROLLBACK = "rollback"


class MigrationStatus(Enum):
    PENDING = "pending"
    APPLIED = "applied"
    FAILED = "failed"
    SKIPPED = "skipped"
    ROLLEDBACK = "rolledback"


class MigrationDirection(Enum):
    UP = "up"
    DOWN = "down"


class DeploymentStatus(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    ROLLBACK = "rollback"


# Error codes
class ErrorCode:
    CONFIG_FORMAT_ERROR = "RT001"
    VERSION_FORMAT_ERROR = "RT002"
    MANIFEST_INVALID = "RT003"
    MANIFEST_NOT_FOUND = "RT004"
    VALIDATION_FAILED = "RT005"
    CIRCULAR_DEPENDENCY = "RT006"
    MIGRATION_FAILED = "RT007"
    BACKUP_FAILED = "RT008"
    BACKUP_NOT_FOUND = "RT009"
    RESTORE_FAILED = "RT010"
    CHECKPOINT_NOT_FOUND = "RT011"
    STATE_NOT_FOUND = "RT012"
    HOOK_FAILED = "RT013"
    FILE_UPDATE_FAILED = "RT014"
    INCOMPATIBLE_TOOL = "RT015"


# Environment variables
ENV_LOG_LEVEL = "RITUAL_TOOL_LOG_LEVEL"
ENV_BACKUP_KEEP = "RITUAL_TOOL_BACKUP_KEEP"
ENV_MAX_CHECKPOINTS = "RITUAL_TOOL_MAX_CHECKPOINTS"
ENV_PROJECT_ROOT = "RITUAL_TOOL_PROJECT_ROOT"

# Validation patterns
VERSION_PATTERN = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"$"
)
RITUAL_NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_.-]*$")

# Logging
LOG_FORMAT = "%(message)s"

# Display constants
EMOJI_SUCCESS = "✓"
EMOJI_ERROR = "✗"
EMOJI_WARNING = "⚠"
EMOJI_ARROW = "→"
EMOJI_BULLET = "•"

# Messages templates
MSG_UPDATE_SUCCESS = f"{EMOJI_SUCCESS} Updated {{name}} from {{from_version}} to {{to_version}}"
MSG_UPDATE_FAILED = f"{EMOJI_ERROR} Update failed: {{error}}"
MSG_ROLLBACK_SUCCEEDED = f"{EMOJI_SUCCESS} Rollback succeeded, changes rolled back"
MSG_ROLLBACK_FAILED = f"{EMOJI_ERROR} Rollback failed: {{error}}"
MSG_BACKUP_CREATED = f"{EMOJI_SUCCESS} Backup created: {{path}}"
MSG_ALREADY_UP_TO_DATE = "Already at version {version}"
