# ritual_tool/services/update_service.py
"""Update orchestration service"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..api.exceptions import HookError, RitualToolError, ValidationError
from ..constants import (
    ErrorCode,
    DeploymentStatus,
    MigrationDirection,
    RITUAL_DIR,
    INSTALLED_MANIFEST_FILE,
    PRE_UPDATE_CHECKPOINT_LABEL,
    MSG_ALREADY_UP_TO_DATE,
)
from ..core.changeset_analyzer import FileContent, is_protected
from ..core.deployment_planner import DeploymentPlanner, order_migrations, pending_migrations
from ..core.manifest_engine import ManifestEngine
from ..core.migration_runner import MigrationRunner, SqlExecutor, CodeExecutor
from ..core.state_store import StateStore, HistoryStore
from ..core.validation_engine import ValidationEngine
from ..core.version_classifier import classify
from ..models.config import ToolConfig
from ..models.manifest import RitualManifest
from ..models.plan import DeploymentPlan
from ..models.result import OperationStatus, UpdateResult
from ..models.state import ProjectState, DeploymentRecord
from ..plugins.base import TaskRegistry, TaskContext
from ..storage.backup_store import BackupStore
from ..storage.checkpoint_store import CheckpointStore
from ..utils.file_utils import atomic_write, ensure_parent_dir, prune_empty_parents
from ..utils.version_utils import parse_version
from .config_service import ConfigService

logger = logging.getLogger(__name__)


@dataclass
class UpdateInputs:
    """Everything an update needs, loaded from disk"""
    current_manifest: RitualManifest
    target_manifest: RitualManifest
    current_files: Dict[str, FileContent] = field(default_factory=dict)
    target_files: Dict[str, FileContent] = field(default_factory=dict)
    known_manifests: Dict[str, RitualManifest] = field(default_factory=dict)


class FileWriter:
    """Apply a plan's file changes to the project tree"""

    def apply(self, project_root: Path, plan: DeploymentPlan,
              target_files: Mapping[str, FileContent],
              protected_patterns: Iterable[str] = ()) -> Tuple[List[str], List[str], List[str]]:
        """
        Write added and modified files, delete removed ones

        Conflicting files are not part of the plan's file lists and are left
        untouched. Protected files are never deleted.

        Returns:
            (written, removed, skipped) relative file names
        """
        project_root = Path(project_root)
        patterns = list(protected_patterns)
        written, removed, skipped = [], [], []

        for name in plan.files_added + plan.files_modified:
            path = project_root / name
            content = target_files.get(name)
            if content is None:
                raise RitualToolError(f"No template content for {name}", ErrorCode.FILE_UPDATE_FAILED)
            ensure_parent_dir(path)
            if isinstance(content, bytes):
                atomic_write(path, content, mode='wb')
            else:
                atomic_write(path, content)
            written.append(name)

        for name in plan.files_deleted:
            if is_protected(name, patterns):
                skipped.append(name)
                continue
            path = project_root / name
            if path.is_file():
                path.unlink()
                prune_empty_parents(path, project_root)
                removed.append(name)

        return written, removed, skipped


class UpdateService:
    """Move a project from its installed ritual version to a target version

    The sequence is validate, plan, checkpoint, backup, write files, run
    migrations, run hooks, verify, persist. Once the backup exists any
    failure restores it (unless forced) so the project is never left worse
    off than before the attempt.
    """

    def __init__(self,
                 project_root: Path,
                 config: Optional[ToolConfig] = None,
                 state_store: Optional[StateStore] = None,
                 history_store: Optional[HistoryStore] = None,
                 backup_store: Optional[BackupStore] = None,
                 checkpoint_store: Optional[CheckpointStore] = None,
                 hook_registry: Optional[TaskRegistry] = None,
                 file_writer: Optional[FileWriter] = None,
                 manifest_engine: Optional[ManifestEngine] = None,
                 validation_engine: Optional[ValidationEngine] = None,
                 sql_executor: Optional[SqlExecutor] = None,
                 code_executor: Optional[CodeExecutor] = None):
        self.project_root = Path(project_root)
        self.config = config or ConfigService(self.project_root).config
        self.state_store = state_store or StateStore(self.project_root)
        self.history_store = history_store or HistoryStore(self.project_root)
        self.backup_store = backup_store or BackupStore(self.project_root)
        self.checkpoint_store = checkpoint_store or CheckpointStore(
            self.project_root,
            max_checkpoints=self.config.checkpoints.max_checkpoints,
            state_store=self.state_store,
        )
        self.hook_registry = hook_registry or TaskRegistry()
        self.file_writer = file_writer or FileWriter()
        self.manifest_engine = manifest_engine or ManifestEngine()
        self.validation_engine = validation_engine or ValidationEngine()
        self.sql_executor = sql_executor
        self.code_executor = code_executor
        self.planner = DeploymentPlanner(migration_order=self.config.migrations.order)

    @property
    def installed_manifest_path(self) -> Path:
        return self.project_root / RITUAL_DIR / INSTALLED_MANIFEST_FILE

    def installed_manifest(self, state: ProjectState) -> RitualManifest:
        """Manifest recorded at the last update, or a bare one built from state"""
        if self.installed_manifest_path.is_file():
            return self.manifest_engine.load_manifest(self.installed_manifest_path)
        return RitualManifest(name=state.ritual_name, version=state.ritual_version)

    def prepare(self, target_path: Path, manifests_dir: Optional[Path] = None) -> UpdateInputs:
        """
        Load manifests and file contents for an update to the ritual at target_path

        Raises:
            StateNotFoundError: If the project has no ritual state
            ManifestError: If the target ritual cannot be loaded
        """
        state = self.state_store.load()
        target_path = Path(target_path)
        ritual_dir = target_path if target_path.is_dir() else target_path.parent

        current_manifest = self.installed_manifest(state)
        target_manifest = self.manifest_engine.load_manifest(target_path)
        target_files = self.manifest_engine.load_template_files(target_manifest, ritual_dir)

        destinations = self.manifest_engine.tracked_destinations(current_manifest, target_manifest)
        destinations = sorted(set(destinations) | set(state.generated_files))
        current_files = self.manifest_engine.load_project_files(self.project_root, destinations)

        known = self.manifest_engine.load_manifests(manifests_dir) if manifests_dir else {}
        return UpdateInputs(
            current_manifest=current_manifest,
            target_manifest=target_manifest,
            current_files=current_files,
            target_files=target_files,
            known_manifests=known,
        )

    def plan(self,
             current_manifest: RitualManifest,
             target_manifest: RitualManifest,
             current_files: Optional[Dict[str, FileContent]] = None,
             target_files: Optional[Dict[str, FileContent]] = None,
             state: Optional[ProjectState] = None,
             baseline_files: Optional[Dict[str, FileContent]] = None) -> DeploymentPlan:
        """
        Plan an update, skipping migrations the project already applied

        Args:
            baseline_files: Files as the installed ritual version produced
                them; project files that differ from these were changed by
                hand and are reported as conflicts when the update touches them
        """
        if state is None and self.state_store.exists():
            state = self.state_store.load()

        plan = self.planner.analyze(
            current_manifest,
            target_manifest,
            current_files=current_files,
            target_files=target_files,
            protected_patterns=self.state_store.protected_patterns(state),
            applied_migrations=state.applied_versions() if state else None,
        )

        if baseline_files is not None and current_files is not None:
            hand_modified = [
                name for name, content in current_files.items()
                if name in baseline_files and baseline_files[name] != content
            ]
            plan.conflicts.extend(
                self.planner.detect_conflicts(hand_modified, plan.files_modified + plan.files_deleted)
            )

        return plan

    def generate_report(self, plan: DeploymentPlan) -> str:
        return self.planner.generate_report(plan)

    def update(self,
               current_manifest: Optional[RitualManifest],
               target_manifest: RitualManifest,
               current_files: Optional[Dict[str, FileContent]] = None,
               target_files: Optional[Dict[str, FileContent]] = None,
               known_manifests: Optional[Mapping[str, RitualManifest]] = None,
               dry_run: bool = False,
               force: bool = False) -> UpdateResult:
        """
        Update the project to target_manifest's version

        Args:
            current_manifest: Manifest of the installed version (None uses
                the one recorded in .ritual/ritual.yaml)
            target_manifest: Manifest of the version to install
            current_files: Project files by destination
            target_files: Target template files by destination; without
                them no files are written
            known_manifests: Other rituals, for dependency cycle checks
            dry_run: Plan and simulate migrations without touching anything
            force: On failure, keep the partial update instead of rolling back

        Returns:
            UpdateResult; failures after the backup are reported here

        Raises:
            StateNotFoundError: If the project has no ritual state
            ParseError: If a version is malformed
            ValidationError: If the target manifest is invalid
            OSError: If the pre-update backup cannot be created
        """
        started = time.monotonic()
        state = self.state_store.load()
        current_manifest = current_manifest or self.installed_manifest(state)

        current_version = parse_version(state.ritual_version)
        target_version = parse_version(target_manifest.version)
        if state.ritual_name and target_manifest.name and state.ritual_name != target_manifest.name:
            raise ValidationError(
                f"Project uses ritual '{state.ritual_name}', cannot update to '{target_manifest.name}'"
            )
        self.validation_engine.ensure_valid(target_manifest, known_manifests)

        result = UpdateResult(
            status=OperationStatus.IN_PROGRESS,
            ritual_name=state.ritual_name,
            from_version=state.ritual_version,
            to_version=target_manifest.version,
            dry_run=dry_run,
        )

        if current_version == target_version:
            result.add_warning(MSG_ALREADY_UP_TO_DATE.format(version=state.ritual_version))
            result.message = MSG_ALREADY_UP_TO_DATE.format(version=state.ritual_version)
            result.complete(OperationStatus.SUCCESS)
            return result

        info = classify(current_version, target_version)
        result.metadata['update_type'] = info.update_type.value
        result.metadata['breaking'] = info.breaking
        if info.breaking:
            result.add_warning(f"Breaking update: {state.ritual_version} -> {target_manifest.version}")

        plan = self.plan(current_manifest, target_manifest, current_files, target_files, state=state)
        result.plan = plan
        for conflict in plan.conflicts:
            if conflict.file != "version":
                result.add_warning(f"Skipping {conflict.file}: {conflict.reason}")

        migrations = pending_migrations(
            order_migrations(target_manifest.migrations, self.config.migrations.order),
            state.applied_versions(),
        )
        runner = MigrationRunner(
            self.project_root,
            dry_run=dry_run,
            sql_executor=self.sql_executor,
            code_executor=self.code_executor,
        )
        result.metadata['run_id'] = runner.run_id

        if dry_run:
            runner.run_chain(migrations, MigrationDirection.UP)
            result.migrations = list(runner.records)
            result.message = "Dry run, no changes applied"
            result.complete(OperationStatus.SKIPPED)
            return result

        logger.info("Updating %s from %s to %s", state.ritual_name, state.ritual_version, target_manifest.version)

        checkpoint = self.checkpoint_store.create_checkpoint(
            PRE_UPDATE_CHECKPOINT_LABEL.format(version=target_manifest.version),
            state.to_dict(),
        )
        result.checkpoint_id = checkpoint.id

        result.backup_path = self.backup_store.create_backup_with_metadata(
            self.project_root,
            {
                'ritual_name': state.ritual_name,
                'ritual_version': state.ritual_version,
                'description': f"Before update {state.ritual_version} -> {target_manifest.version}",
            },
        )

        try:
            self._apply(result, plan, state, target_manifest, target_files, migrations, runner)
        except Exception as e:
            result.migrations = list(runner.records)
            self._handle_failure(result, e, state, runner, force)
        else:
            result.migrations = list(runner.records)
            result.message = f"Updated {state.ritual_name} to {target_manifest.version}"
            result.complete(OperationStatus.SUCCESS)
            self._prune_backups(result)

        self._record_history(result, started)
        return result

    def _apply(self, result: UpdateResult, plan: DeploymentPlan, state: ProjectState,
               target_manifest: RitualManifest, target_files: Optional[Mapping[str, FileContent]],
               migrations, runner: MigrationRunner) -> None:
        if target_manifest.pre_update_hooks:
            self._run_pre_update_hooks(result, target_manifest)

        protected = self.state_store.protected_patterns(state) + list(target_manifest.protected)

        if target_files is not None:
            written, removed, skipped = self.file_writer.apply(
                self.project_root, plan, target_files, protected
            )
            result.files_written = written
            result.files_removed = removed
            for name in skipped:
                result.add_warning(f"Kept protected file {name}")
            logger.info("Wrote %d files, removed %d", len(written), len(removed))

        runner.run_chain(migrations, MigrationDirection.UP)

        if target_manifest.post_update_hooks:
            self._run_post_update_hooks(result, target_manifest)

        if target_files is not None:
            self._verify_files(result, target_files)

        for record in runner.applied():
            state.add_migration(record.to_version)
        state.ritual_version = target_manifest.version
        state.updated_at = datetime.now()
        if target_manifest.templates:
            state.generated_files = sorted(target_manifest.template_destinations())
        self.state_store.save(state)
        self.manifest_engine.save_manifest(target_manifest, self.installed_manifest_path)

    def _hook_context(self, result: UpdateResult, manifest: RitualManifest, hook_point: str) -> TaskContext:
        return TaskContext(
            project_root=self.project_root,
            hook_point=hook_point,
            data={
                'ritual_name': manifest.name,
                'from_version': result.from_version,
                'to_version': result.to_version,
            },
        )

    def _run_pre_update_hooks(self, result: UpdateResult, manifest: RitualManifest) -> None:
        # A failing pre-update task stops the update before any file is written.
        # Hooks naming no registered task are skipped with a warning.
        context = self._hook_context(result, manifest, "pre_update")
        hooks = self.hook_registry.run_hooks(manifest.pre_update_hooks, context)
        for outcome in hooks.unresolved:
            result.add_warning(f"Pre-update hook {outcome.name} skipped: no task registered")
        failed = [outcome for outcome in hooks.failures if outcome.resolved]
        if failed:
            raise HookError(failed[0].name, failed[0].error)

    def _run_post_update_hooks(self, result: UpdateResult, manifest: RitualManifest) -> None:
        context = self._hook_context(result, manifest, "post_update")
        hooks = self.hook_registry.run_hooks(manifest.post_update_hooks, context)
        for failure in hooks.failures:
            result.add_warning(f"Post-update hook {failure.name} failed: {failure.error}")

    def _verify_files(self, result: UpdateResult, target_files: Mapping[str, FileContent]) -> None:
        for name in result.files_written:
            path = self.project_root / name
            expected = target_files[name]
            if isinstance(expected, str):
                expected = expected.encode('utf-8')
            if path.read_bytes() != expected:
                raise RitualToolError(f"Validation failed: {name} does not match the template",
                                      ErrorCode.VALIDATION_FAILED)

    def _handle_failure(self, result: UpdateResult, error: BaseException,
                        state: ProjectState, runner: MigrationRunner, force: bool) -> None:
        default_code = (
            ErrorCode.MIGRATION_FAILED if runner.failed() else ErrorCode.FILE_UPDATE_FAILED
        )
        code = getattr(error, 'error_code', None) or default_code
        result.set_error(code, str(error), type=type(error).__name__)
        logger.error("Update failed: %s", error)

        if force:
            # Keep what was applied so it is not re-run next time
            for record in runner.applied():
                state.add_migration(record.to_version)
            self.state_store.save(state)
            result.message = "Update failed, partial changes kept (forced)"
            result.complete(OperationStatus.FAILED)
            return

        try:
            self.backup_store.restore_from_backup(
                result.backup_path, self.project_root, clean=self.config.restore.clean
            )
        except Exception as rollback_error:
            code = getattr(rollback_error, 'error_code', None) or ErrorCode.RESTORE_FAILED
            result.set_rollback_error(code, str(rollback_error), type=type(rollback_error).__name__)
            result.message = "Update failed and rollback failed"
            logger.error("Rollback from %s failed: %s", result.backup_path, rollback_error)
            result.complete(OperationStatus.FAILED)
            return

        result.rolled_back = True
        result.message = "Update failed, changes rolled back"
        logger.info("Rolled back to %s", result.from_version)
        result.complete(OperationStatus.ROLLED_BACK)

    def _prune_backups(self, result: UpdateResult) -> None:
        if not self.config.backups.auto_clean:
            return
        removed = self.backup_store.clean_old_backups(self.project_root, self.config.backups.keep)
        if removed:
            logger.info("Removed %d old backups", len(removed))

    def _record_history(self, result: UpdateResult, started: float) -> None:
        if result.status == OperationStatus.SUCCESS:
            status = DeploymentStatus.SUCCESS
        elif result.rollback_succeeded:
            status = DeploymentStatus.ROLLBACK
        else:
            status = DeploymentStatus.FAILURE

        errors = [result.error.message] if result.error else []
        if result.rollback_error:
            errors.append(f"rollback: {result.rollback_error.message}")

        self.history_store.append(DeploymentRecord(
            from_version=result.from_version,
            to_version=result.to_version,
            status=status,
            message=result.message,
            errors=errors,
            warnings=list(result.warnings),
            duration=round(time.monotonic() - started, 3),
        ))
