"""Migration models"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Any

from ..constants import MigrationStatus


@dataclass
class MigrationHandler:
    """One direction of a migration

    Exactly one of the forms is expected to be populated.
    """
    sql: List[str] = field(default_factory=list)
    script: Optional[str] = None
    code: Optional[str] = None

    def forms(self) -> List[str]:
        """Names of the populated handler forms"""
        populated = []
        if self.sql:
            populated.append("sql")
        if self.script:
            populated.append("script")
        if self.code:
            populated.append("code")
        return populated

    def is_empty(self) -> bool:
        return not self.forms()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {}
        if self.sql:
            data['sql'] = list(self.sql)
        if self.script:
            data['script'] = self.script
        if self.code:
            data['code'] = self.code
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'MigrationHandler':
        """Create from dictionary"""
        data = data or {}
        sql = data.get('sql') or []
        if isinstance(sql, str):
            sql = [sql]
        return cls(
            sql=list(sql),
            script=data.get('script'),
            # "go_code" is accepted for manifests written for older tools
            code=data.get('code') or data.get('go_code'),
        )


@dataclass
class Migration:
    """Declared transformation between two ritual versions"""
    from_version: str
    to_version: str
    description: str = ""
    up: MigrationHandler = field(default_factory=MigrationHandler)
    down: MigrationHandler = field(default_factory=MigrationHandler)
    idempotent: bool = False

    @property
    def label(self) -> str:
        return f"{self.from_version} -> {self.to_version}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            'from_version': self.from_version,
            'to_version': self.to_version,
            'description': self.description,
            'up': self.up.to_dict(),
        }
        if not self.down.is_empty():
            data['down'] = self.down.to_dict()
        if self.idempotent:
            data['idempotent'] = True
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Migration':
        """Create from dictionary"""
        return cls(
            from_version=str(data.get('from_version', '')),
            to_version=str(data.get('to_version', '')),
            description=data.get('description', ''),
            up=MigrationHandler.from_dict(data.get('up')),
            down=MigrationHandler.from_dict(data.get('down')),
            idempotent=bool(data.get('idempotent', False)),
        )


@dataclass
class MigrationRecord:
    """Runtime outcome of one migration execution"""
    from_version: str
    to_version: str
    description: str
    status: MigrationStatus = MigrationStatus.PENDING
    applied_at: datetime = field(default_factory=datetime.now)
    error: Optional[str] = None
    run_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            'from_version': self.from_version,
            'to_version': self.to_version,
            'description': self.description,
            'status': self.status.value,
            'applied_at': self.applied_at.isoformat(),
        }
        if self.error:
            data['error'] = self.error
        if self.run_id:
            data['run_id'] = self.run_id
        return data
