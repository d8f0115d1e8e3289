# ritual_tool/core/migration_runner.py
"""Migration execution"""

import logging
import os
import subprocess
import uuid
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from ..api.exceptions import MigrationError, ValidationError
from ..constants import MigrationStatus, MigrationDirection, SCRIPT_PERMISSIONS
from ..models.migration import Migration, MigrationHandler, MigrationRecord

logger = logging.getLogger(__name__)

SqlExecutor = Callable[[str], None]
CodeExecutor = Callable[[str, Path], None]


class MigrationRunner:
    """Run migration handlers one at a time and record each outcome

    The runner never rolls anything back itself; restoring the project after
    a failed migration is up to the caller.
    """

    def __init__(self,
                 project_root: Path,
                 dry_run: bool = False,
                 sql_executor: Optional[SqlExecutor] = None,
                 code_executor: Optional[CodeExecutor] = None):
        """Initialize runner

        Args:
            project_root: Project directory, scripts run from here
            dry_run: Record migrations as skipped instead of running them
            sql_executor: Callable executing one SQL statement
            code_executor: Callable executing a code reference
        """
        self.project_root = Path(project_root)
        self.dry_run = dry_run
        self.sql_executor = sql_executor
        self.code_executor = code_executor
        self.run_id = uuid.uuid4().hex
        self.records: List[MigrationRecord] = []

    def run_up(self, migration: Migration) -> MigrationRecord:
        """
        Apply a migration

        Returns:
            The recorded outcome

        Raises:
            MigrationError: When the handler fails
            NotImplementedError: When the handler kind has no executor
        """
        record = self._new_record(
            migration.from_version, migration.to_version, migration.description
        )
        return self._execute(migration.up, record, MigrationStatus.APPLIED, "up")

    def run_down(self, migration: Migration) -> MigrationRecord:
        """
        Revert a migration, recording it with from/to swapped

        Raises:
            MigrationError: When the handler fails
            NotImplementedError: When the handler kind has no executor
        """
        record = self._new_record(
            migration.to_version, migration.from_version, f"Rollback: {migration.description}"
        )
        return self._execute(migration.down, record, MigrationStatus.ROLLEDBACK, "down")

    def run_chain(self, migrations: Iterable[Migration],
                  direction: Union[str, MigrationDirection] = MigrationDirection.UP) -> List[MigrationRecord]:
        """
        Run migrations strictly in the given order, stopping at the first failure

        The first error is re-raised unchanged; migrations after it are not
        attempted and get no record.

        Args:
            migrations: Migrations in execution order
            direction: "up" or "down"

        Returns:
            Records of this chain

        Raises:
            ValueError: For an invalid direction
        """
        try:
            direction = MigrationDirection(direction)
        except ValueError:
            raise ValueError(f"invalid direction: {direction} (must be 'up' or 'down')")

        step = self.run_up if direction == MigrationDirection.UP else self.run_down
        chain_records = []
        for migration in migrations:
            chain_records.append(step(migration))
        return chain_records

    def validate(self, migration: Migration) -> None:
        """
        Structural check performed before anything runs

        Raises:
            ValidationError: If the up handler is missing or ambiguous, or a
                non-idempotent migration has no down handler
        """
        errors = validate_migration(migration)
        if errors:
            raise ValidationError(f"migration {migration.label}: {errors[0]}", errors)

    def applied(self) -> List[MigrationRecord]:
        return [r for r in self.records if r.status == MigrationStatus.APPLIED]

    def failed(self) -> List[MigrationRecord]:
        return [r for r in self.records if r.status == MigrationStatus.FAILED]

    def _new_record(self, from_version: str, to_version: str, description: str) -> MigrationRecord:
        return MigrationRecord(
            from_version=from_version,
            to_version=to_version,
            description=description,
            run_id=self.run_id,
        )

    def _execute(self, handler: MigrationHandler, record: MigrationRecord,
                 success_status: MigrationStatus, direction: str) -> MigrationRecord:
        self.records.append(record)

        if self.dry_run:
            record.status = MigrationStatus.SKIPPED
            logger.info("Dry run: skipping %s migration %s -> %s",
                        direction, record.from_version, record.to_version)
            return record

        logger.info("Running %s migration %s -> %s",
                    direction, record.from_version, record.to_version)
        try:
            self._execute_handler(handler)
        except NotImplementedError as e:
            record.status = MigrationStatus.FAILED
            record.error = str(e)
            raise
        except Exception as e:
            record.status = MigrationStatus.FAILED
            record.error = str(e)
            logger.error("%s migration %s -> %s failed: %s",
                         direction.capitalize(), record.from_version, record.to_version, e)
            if isinstance(e, MigrationError):
                e.from_version = e.from_version or record.from_version
                e.to_version = e.to_version or record.to_version
                raise
            raise MigrationError(
                f"{direction} migration failed: {e}",
                from_version=record.from_version,
                to_version=record.to_version,
            ) from e

        record.status = success_status
        return record

    def _execute_handler(self, handler: MigrationHandler) -> None:
        if handler.sql:
            self._execute_sql(handler.sql)
        if handler.script:
            self._execute_script(handler.script)
        if handler.code:
            self._execute_code(handler.code)

    def _execute_sql(self, statements: List[str]) -> None:
        for index, statement in enumerate(statements, 1):
            if not statement or not statement.strip():
                raise MigrationError(f"SQL execution failed: empty SQL statement (#{index})")

        if self.sql_executor is None:
            raise NotImplementedError("SQL execution is not yet implemented")

        for statement in statements:
            logger.debug("Executing SQL: %s", statement)
            self.sql_executor(statement)

    def _execute_script(self, script: str) -> None:
        script_path = self.project_root / script
        if not script_path.is_file():
            raise MigrationError(f"script not found: {script}")

        os.chmod(script_path, SCRIPT_PERMISSIONS)

        # stdout/stderr are inherited so the operator sees script output live
        completed = subprocess.run([str(script_path.resolve())], cwd=str(self.project_root))
        if completed.returncode != 0:
            raise MigrationError(
                f"script execution failed: {script} exited with status {completed.returncode}"
            )

    def _execute_code(self, code: str) -> None:
        if self.code_executor is None:
            raise NotImplementedError("code migration execution is not yet implemented")
        self.code_executor(code, self.project_root)


def validate_migration(migration: Migration) -> List[str]:
    """Structural problems of a migration, empty when it is runnable"""
    errors = []
    forms = migration.up.forms()

    if not forms:
        errors.append("migration has no up handler")
    elif len(forms) > 1:
        errors.append(
            f"up handler must define a single form, got: {', '.join(forms)}"
        )

    if not migration.idempotent and migration.down.is_empty():
        errors.append("non-idempotent migration requires down handler")

    return errors
