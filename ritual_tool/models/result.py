"""Operation result models"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Any

from .migration import MigrationRecord
from .plan import DeploymentPlan


class OperationStatus(Enum):
    """Operation status"""
    SUCCESS = "success"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"
    SKIPPED = "skipped"
    IN_PROGRESS = "in_progress"


@dataclass
class ErrorDetail:
    """Detailed error information"""

    code: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat()
        }


@dataclass
class Result:
    """Base result class"""

    status: OperationStatus
    message: str = ""
    errors: List[ErrorDetail] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    @property
    def is_success(self) -> bool:
        """Check if operation was successful"""
        return self.status == OperationStatus.SUCCESS

    @property
    def is_failed(self) -> bool:
        """Check if operation failed"""
        return self.status in (OperationStatus.FAILED, OperationStatus.ROLLED_BACK)

    @property
    def duration(self) -> Optional[float]:
        """Get operation duration in seconds"""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def add_error(self, code: str, message: str, **context) -> ErrorDetail:
        """Add an error"""
        error = ErrorDetail(code=code, message=message, context=context)
        self.errors.append(error)
        return error

    def add_warning(self, message: str) -> None:
        """Add a warning"""
        self.warnings.append(message)

    def complete(self, status: Optional[OperationStatus] = None) -> None:
        """Mark operation as complete"""
        self.end_time = datetime.now()
        if status:
            self.status = status


@dataclass
class UpdateResult(Result):
    """Result of an update attempt

    ``error`` is the failure that stopped the update, ``rollback_error`` the
    failure (if any) while restoring the pre-update backup. They are kept
    apart so callers can tell "update failed, project restored" from
    "update failed, project left in an unknown state".
    """

    ritual_name: str = ""
    from_version: str = ""
    to_version: str = ""
    dry_run: bool = False
    plan: Optional[DeploymentPlan] = None
    backup_path: Optional[Path] = None
    checkpoint_id: Optional[str] = None
    migrations: List[MigrationRecord] = field(default_factory=list)
    files_written: List[str] = field(default_factory=list)
    files_removed: List[str] = field(default_factory=list)
    error: Optional[ErrorDetail] = None
    rollback_error: Optional[ErrorDetail] = None
    rolled_back: bool = False

    @property
    def rollback_attempted(self) -> bool:
        return self.rolled_back or self.rollback_error is not None

    @property
    def rollback_succeeded(self) -> bool:
        return self.rolled_back and self.rollback_error is None

    def set_error(self, code: str, message: str, **context) -> None:
        """Record the primary failure"""
        self.error = self.add_error(code, message, **context)

    def set_rollback_error(self, code: str, message: str, **context) -> None:
        """Record a failure during rollback"""
        self.rollback_error = self.add_error(code, message, **context)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "status": self.status.value,
            "message": self.message,
            "ritual_name": self.ritual_name,
            "from_version": self.from_version,
            "to_version": self.to_version,
            "dry_run": self.dry_run,
            "backup_path": str(self.backup_path) if self.backup_path else None,
            "checkpoint_id": self.checkpoint_id,
            "migrations": [m.to_dict() for m in self.migrations],
            "files_written": list(self.files_written),
            "files_removed": list(self.files_removed),
            "error": self.error.to_dict() if self.error else None,
            "rollback_error": self.rollback_error.to_dict() if self.rollback_error else None,
            "rolled_back": self.rolled_back,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": self.warnings,
            "duration": self.duration
        }
