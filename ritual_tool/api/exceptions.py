"""Exception definitions for ritual-tool"""

from typing import List, Optional


class RitualToolError(Exception):
    """Base exception for ritual-tool"""

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.error_code = error_code


class ParseError(RitualToolError):
    """Malformed version string"""

    def __init__(self, value: str, message: str = None):
        if message is None:
            message = (
                f"Invalid version format: '{value}'. "
                "Expected format: MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]"
            )
        super().__init__(message, "RT002")
        self.value = value


class ValidationError(RitualToolError):
    """Validation error"""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message, "RT005")
        self.errors = errors or [message]


class CircularDependencyError(ValidationError):
    """A ritual depends on itself through its dependency chain"""

    def __init__(self, ritual_name: str, cycle: List[str]):
        message = (
            f"circular dependency detected in ritual '{ritual_name}': "
            f"{' -> '.join(cycle)}"
        )
        super().__init__(message)
        self.error_code = "RT006"
        self.ritual_name = ritual_name
        self.cycle = cycle


class ManifestError(RitualToolError):
    """Manifest could not be loaded"""

    def __init__(self, message: str):
        super().__init__(message, "RT003")


class ManifestNotFoundError(ManifestError):
    """Manifest file not found"""

    def __init__(self, path: str):
        super().__init__(f"Manifest not found: {path}")
        self.error_code = "RT004"
        self.path = path


class ConfigError(RitualToolError):
    """Configuration error"""

    def __init__(self, message: str):
        super().__init__(message, "RT001")


class MigrationError(RitualToolError):
    """Migration handler failure"""

    def __init__(self, message: str, from_version: str = None, to_version: str = None):
        super().__init__(message, "RT007")
        self.from_version = from_version
        self.to_version = to_version


class BackupError(RitualToolError, OSError):
    """Backup or restore failure"""

    def __init__(self, message: str, error_code: str = "RT008"):
        super().__init__(message, error_code)


class BackupNotFoundError(BackupError):
    """Backup path does not exist"""

    def __init__(self, backup_path: str):
        super().__init__(f"backup not found: {backup_path}", "RT009")
        self.backup_path = backup_path


class CheckpointNotFoundError(RitualToolError):
    """Checkpoint not found"""

    def __init__(self, reference: str):
        super().__init__(f"checkpoint not found: {reference}", "RT011")
        self.reference = reference


class StateNotFoundError(RitualToolError):
    """Project has no ritual state"""

    def __init__(self, path: str):
        message = (
            f"No ritual state found at {path}. "
            "Is this project managed by ritual-tool?"
        )
        super().__init__(message, "RT012")
        self.path = path


class HookError(RitualToolError):
    """Hook task failure"""

    def __init__(self, hook_name: str, message: str):
        super().__init__(f"hook '{hook_name}' failed: {message}", "RT013")
        self.hook_name = hook_name

