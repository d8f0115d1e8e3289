"""Tests for update orchestration."""

import pytest

from ritual_tool.api.exceptions import ParseError, RitualToolError, ValidationError
from ritual_tool.constants import BACKUP_FILES_DIR, DeploymentStatus, MigrationStatus
from ritual_tool.core import HistoryStore, StateStore
from ritual_tool.models import OperationStatus
from ritual_tool.models.plan import DeploymentPlan
from ritual_tool.models.config import BackupConfig, ToolConfig
from ritual_tool.plugins import HookTask, TaskRegistry
from ritual_tool.services import UpdateService
from ritual_tool.services.update_service import FileWriter
from ritual_tool.storage import BackupStore

V11_FILES = {
    "README.md": "# webapp v1.1\n",
    "config/app.yaml": "debug: false\n",
    "docs/guide.md": "Read me first\n",
}

LOGO = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\xff\xfe"


class FailingTask(HookTask):
    @property
    def name(self):
        return "explode"

    def execute(self, context):
        raise RuntimeError("boom")


class RecordingTask(HookTask):
    calls = []

    @property
    def name(self):
        return "record"

    def execute(self, context):
        RecordingTask.calls.append(context.data)


class BrokenRestoreStore(BackupStore):
    def restore_from_backup(self, backup_path, target_dir=None, clean=False):
        raise OSError("disk gone")


class CrashingRestoreStore(BackupStore):
    def restore_from_backup(self, backup_path, target_dir=None, clean=False):
        raise RuntimeError("restore crashed")


class HalfWayWriter(FileWriter):
    """Writes the plan, then fails with a non-domain error."""

    def apply(self, project_root, plan, target_files, protected_patterns=()):
        super().apply(project_root, plan, target_files, protected_patterns)
        raise ValueError("unexpected template value")


@pytest.fixture
def service(project_dir):
    return UpdateService(project_dir, config=ToolConfig())


@pytest.fixture
def update_to(service, write_ritual):
    """Run an update to a freshly written ritual version."""
    def _update(version, files=V11_FILES, **kwargs):
        options = {key: kwargs.pop(key) for key in ("dry_run", "force") if key in kwargs}
        inputs = service.prepare(write_ritual(version, files, **kwargs))
        return service.update(
            inputs.current_manifest,
            inputs.target_manifest,
            inputs.current_files,
            inputs.target_files,
            inputs.known_manifests,
            **options,
        )
    return _update


def latest_history(project_dir):
    return HistoryStore(project_dir).load().latest(1)[0]


class TestPrepare:
    """Loading update inputs."""

    def test_inputs(self, service, write_ritual):
        inputs = service.prepare(write_ritual("1.1.0", V11_FILES))

        assert inputs.current_manifest.version == "1.0.0"
        assert inputs.target_manifest.version == "1.1.0"
        assert inputs.current_files == {"README.md": "# webapp v1\n", "config/app.yaml": "debug: false\n"}
        assert inputs.target_files == V11_FILES

    def test_known_manifests(self, service, write_ritual):
        base_dir = write_ritual("1.0.0", {}, name="base")
        inputs = service.prepare(write_ritual("1.1.0", V11_FILES), manifests_dir=base_dir.parent)

        assert set(inputs.known_manifests) == {"base", "webapp"}

    def test_binary_template_loaded_as_bytes(self, service, write_ritual):
        inputs = service.prepare(write_ritual("1.1.0", dict(V11_FILES, **{"assets/logo.png": LOGO})))

        assert inputs.target_files["assets/logo.png"] == LOGO
        assert inputs.target_files["README.md"] == "# webapp v1.1\n"

    def test_binary_project_file_loaded_as_bytes(self, service, write_ritual, project_dir):
        (project_dir / "assets").mkdir()
        (project_dir / "assets" / "logo.png").write_bytes(LOGO)

        inputs = service.prepare(write_ritual("1.1.0", dict(V11_FILES, **{"assets/logo.png": LOGO})))

        assert inputs.current_files["assets/logo.png"] == LOGO


class TestSuccessfulUpdate:
    """Happy path."""

    def test_files_state_and_history(self, update_to, project_dir):
        result = update_to("1.1.0")

        assert result.status == OperationStatus.SUCCESS
        assert result.message == "Updated webapp to 1.1.0"
        assert sorted(result.files_written) == ["README.md", "docs/guide.md"]
        assert (project_dir / "README.md").read_text() == "# webapp v1.1\n"
        assert (project_dir / "docs" / "guide.md").read_text() == "Read me first\n"

        state = StateStore(project_dir).load()
        assert state.ritual_version == "1.1.0"
        assert state.generated_files == ["README.md", "config/app.yaml", "docs/guide.md"]
        assert state.updated_at is not None

        record = latest_history(project_dir)
        assert (record.from_version, record.to_version) == ("1.0.0", "1.1.0")
        assert record.status == DeploymentStatus.SUCCESS

    def test_checkpoint_backup_and_installed_manifest(self, update_to, service, project_dir):
        result = update_to("1.1.0")

        assert result.backup_path.is_dir()
        assert (result.backup_path / BACKUP_FILES_DIR / "README.md").read_text() == "# webapp v1\n"
        checkpoint = service.checkpoint_store.get_checkpoint(result.checkpoint_id)
        assert checkpoint.label == "pre-update-1.1.0"
        assert checkpoint.state["ritual_version"] == "1.0.0"
        assert service.installed_manifest(StateStore(project_dir).load()).version == "1.1.0"

    def test_binary_template_written_byte_exact(self, update_to, project_dir):
        result = update_to("1.1.0", files=dict(V11_FILES, **{"assets/logo.png": LOGO}))

        assert result.is_success
        assert (project_dir / "assets" / "logo.png").read_bytes() == LOGO

        newer = LOGO + b"\x00\x01"
        result = update_to("1.2.0", files=dict(V11_FILES, **{"assets/logo.png": newer}))

        assert result.is_success
        assert result.files_written == ["assets/logo.png"]
        assert (project_dir / "assets" / "logo.png").read_bytes() == newer

    def test_crlf_template_verified(self, update_to, project_dir):
        result = update_to("1.1.0", files=dict(V11_FILES, **{"setup.bat": "@echo off\r\nexit /b 0\r\n"}))

        assert result.is_success
        assert (project_dir / "setup.bat").read_bytes() == b"@echo off\r\nexit /b 0\r\n"

    def test_migrations_recorded(self, update_to, project_dir, make_migration, write_script):
        write_script(project_dir, "migrations/mark.sh", "echo migrated > marker.txt")

        result = update_to("1.1.0", migrations=[make_migration("1.0.0", "1.1.0", script="migrations/mark.sh")])

        assert result.is_success
        assert [r.status for r in result.migrations] == [MigrationStatus.APPLIED]
        assert all(r.run_id == result.metadata["run_id"] for r in result.migrations)
        assert (project_dir / "marker.txt").exists()
        assert StateStore(project_dir).load().applied_versions() == ["1.1.0"]

    def test_removed_template_deleted(self, update_to, project_dir):
        update_to("1.1.0")
        result = update_to("1.2.0", files={"README.md": "# webapp v1.2\n", "config/app.yaml": "debug: false\n"})

        assert result.files_removed == ["docs/guide.md"]
        assert not (project_dir / "docs").exists()

    def test_breaking_update_warns(self, update_to):
        result = update_to("2.0.0")

        assert result.is_success
        assert result.metadata["update_type"] == "major"
        assert result.metadata["breaking"] is True
        assert "Breaking update: 1.0.0 -> 2.0.0" in result.warnings

    def test_old_backups_pruned(self, project_dir, write_ritual):
        service = UpdateService(project_dir, config=ToolConfig(backups=BackupConfig(keep=2)))
        for _ in range(3):
            service.backup_store.create_backup()

        inputs = service.prepare(write_ritual("1.1.0", V11_FILES))
        result = service.update(inputs.current_manifest, inputs.target_manifest,
                                inputs.current_files, inputs.target_files)

        backups = service.backup_store.list_backups()
        assert len(backups) == 2
        assert backups[0].path == result.backup_path.resolve()


class TestNoChange:
    """Updates that do nothing."""

    def test_already_up_to_date(self, update_to, project_dir):
        result = update_to("1.0.0", files={"README.md": "changed\n"})

        assert result.status == OperationStatus.SUCCESS
        assert result.warnings == ["Already at version 1.0.0"]
        assert (project_dir / "README.md").read_text() == "# webapp v1\n"
        assert len(HistoryStore(project_dir).load()) == 0
        assert not (project_dir / ".ritual" / "backups").exists()

    def test_dry_run(self, update_to, project_dir, make_migration):
        result = update_to("1.1.0", dry_run=True,
                           migrations=[make_migration("1.0.0", "1.1.0", script="missing.sh")])

        assert result.status == OperationStatus.SKIPPED
        assert result.dry_run
        assert [r.status for r in result.migrations] == [MigrationStatus.SKIPPED]
        assert result.plan.files_added == ["docs/guide.md"]
        assert (project_dir / "README.md").read_text() == "# webapp v1\n"
        assert StateStore(project_dir).load().ritual_version == "1.0.0"
        assert not (project_dir / ".ritual" / "backups").exists()
        assert len(HistoryStore(project_dir).load()) == 0


class TestRejectedBeforeChanges:
    """Errors raised before anything is touched."""

    def test_malformed_target_version(self, service, make_manifest, project_dir):
        with pytest.raises(ParseError):
            service.update(None, make_manifest("1.1"))
        assert not (project_dir / ".ritual" / "backups").exists()

    def test_other_ritual(self, service, make_manifest):
        with pytest.raises(ValidationError, match="cannot update to 'api'"):
            service.update(None, make_manifest("1.1.0", name="api"))

    def test_cycle_rejected(self, service, make_manifest, project_dir):
        known = {"base": make_manifest("1.0.0", name="base", rituals=["webapp"])}

        with pytest.raises(ValidationError):
            service.update(None, make_manifest("1.1.0", rituals=["base"]), known_manifests=known)
        assert StateStore(project_dir).load().ritual_version == "1.0.0"


class TestFailure:
    """Rollback and forced updates."""

    def test_migration_failure_rolls_back(self, update_to, project_dir, make_migration, write_script):
        write_script(project_dir, "migrations/fail.sh", "exit 1")

        result = update_to("1.1.0", migrations=[make_migration("1.0.0", "1.1.0", script="migrations/fail.sh")])

        assert result.status == OperationStatus.ROLLED_BACK
        assert result.is_failed
        assert result.rollback_succeeded
        assert result.error.code == "RT007"
        assert result.rollback_error is None
        assert result.message == "Update failed, changes rolled back"
        assert (project_dir / "README.md").read_text() == "# webapp v1\n"
        assert not (project_dir / "docs").exists()
        assert StateStore(project_dir).load().ritual_version == "1.0.0"
        assert not (project_dir / ".ritual" / "ritual.yaml").exists()

        record = latest_history(project_dir)
        assert record.status == DeploymentStatus.ROLLBACK
        assert "status 1" in record.errors[0]

    def test_failed_rollback_reports_both_errors(self, project_dir, write_ritual, make_migration, write_script):
        write_script(project_dir, "fail.sh", "exit 1")
        service = UpdateService(project_dir, config=ToolConfig(), backup_store=BrokenRestoreStore(project_dir))
        inputs = service.prepare(write_ritual(
            "1.1.0", V11_FILES, migrations=[make_migration("1.0.0", "1.1.0", script="fail.sh")]
        ))

        result = service.update(inputs.current_manifest, inputs.target_manifest,
                                inputs.current_files, inputs.target_files)

        assert result.status == OperationStatus.FAILED
        assert result.error.code == "RT007"
        assert result.rollback_error.message == "disk gone"
        assert result.rollback_error.code == "RT010"
        assert not result.rollback_succeeded
        assert result.rollback_attempted

        record = latest_history(project_dir)
        assert record.status == DeploymentStatus.FAILURE
        assert record.errors[1] == "rollback: disk gone"

    def test_force_keeps_partial_changes(self, update_to, project_dir, make_migration, write_script):
        write_script(project_dir, "ok.sh", "exit 0")
        write_script(project_dir, "fail.sh", "exit 1")

        result = update_to("1.2.0", force=True, migrations=[
            make_migration("1.0.0", "1.1.0", script="ok.sh"),
            make_migration("1.1.0", "1.2.0", script="fail.sh"),
        ])

        assert result.status == OperationStatus.FAILED
        assert not result.rollback_attempted
        assert result.message == "Update failed, partial changes kept (forced)"
        assert (project_dir / "README.md").read_text() == "# webapp v1.1\n"

        state = StateStore(project_dir).load()
        assert state.ritual_version == "1.0.0"
        assert state.applied_versions() == ["1.1.0"]
        assert latest_history(project_dir).status == DeploymentStatus.FAILURE

    def test_sql_without_executor_rolls_back(self, update_to, project_dir, make_migration):
        result = update_to("1.1.0", migrations=[make_migration("1.0.0", "1.1.0", sql=["SELECT 1"])])

        assert result.status == OperationStatus.ROLLED_BACK
        assert result.error.context["type"] == "NotImplementedError"
        assert (project_dir / "README.md").read_text() == "# webapp v1\n"

    def test_unexpected_error_rolls_back(self, project_dir, write_ritual):
        service = UpdateService(project_dir, config=ToolConfig(), file_writer=HalfWayWriter())
        inputs = service.prepare(write_ritual("1.1.0", V11_FILES))

        result = service.update(inputs.current_manifest, inputs.target_manifest,
                                inputs.current_files, inputs.target_files)

        assert result.status == OperationStatus.ROLLED_BACK
        assert result.rollback_succeeded
        assert result.error.code == "RT014"
        assert result.error.message == "unexpected template value"
        assert result.error.context["type"] == "ValueError"
        assert (project_dir / "README.md").read_text() == "# webapp v1\n"
        assert not (project_dir / "docs").exists()
        assert StateStore(project_dir).load().ritual_version == "1.0.0"
        assert latest_history(project_dir).status == DeploymentStatus.ROLLBACK

    def test_missing_template_content_named(self, project_dir):
        plan = DeploymentPlan(current_version="1.0.0", target_version="1.1.0", files_added=["docs/guide.md"])

        with pytest.raises(RitualToolError) as exc_info:
            FileWriter().apply(project_dir, plan, {})

        assert exc_info.value.error_code == "RT014"
        assert "docs/guide.md" in str(exc_info.value)

    def test_unexpected_rollback_error_reported(self, project_dir, write_ritual):
        service = UpdateService(project_dir, config=ToolConfig(), file_writer=HalfWayWriter(),
                                backup_store=CrashingRestoreStore(project_dir))
        inputs = service.prepare(write_ritual("1.1.0", V11_FILES))

        result = service.update(inputs.current_manifest, inputs.target_manifest,
                                inputs.current_files, inputs.target_files)

        assert result.status == OperationStatus.FAILED
        assert result.rollback_error.code == "RT010"
        assert result.rollback_error.message == "restore crashed"
        assert latest_history(project_dir).status == DeploymentStatus.FAILURE


class TestProtectionAndHooks:
    """Protected files and post-update hooks."""

    def test_protected_file_not_overwritten(self, update_to, project_dir):
        files = dict(V11_FILES, **{"config/app.yaml": "debug: true\n"})

        result = update_to("1.1.0", files=files, protected=["config/*.yaml"])

        assert result.is_success
        assert (project_dir / "config" / "app.yaml").read_text() == "debug: false\n"
        assert any(w.startswith("Skipping config/app.yaml:") for w in result.warnings)

    def test_failing_hook_only_warns(self, project_dir, write_ritual):
        registry = TaskRegistry()
        registry.register("explode", FailingTask)
        registry.register("record", RecordingTask)
        RecordingTask.calls = []
        service = UpdateService(project_dir, config=ToolConfig(), hook_registry=registry)
        inputs = service.prepare(write_ritual("1.1.0", V11_FILES,
                                              hooks={"post_update": ["explode", "record"]}))

        result = service.update(inputs.current_manifest, inputs.target_manifest,
                                inputs.current_files, inputs.target_files)

        assert result.is_success
        assert "Post-update hook explode failed: boom" in result.warnings
        assert RecordingTask.calls == [{"ritual_name": "webapp", "from_version": "1.0.0", "to_version": "1.1.0"}]

    def test_hand_modified_files_reported(self, service, make_manifest):
        plan = service.plan(
            make_manifest("1.0.0"), make_manifest("1.1.0"),
            current_files={"README.md": "edited by hand", "config/app.yaml": "debug: false\n"},
            target_files={"README.md": "# v1.1", "config/app.yaml": "debug: false\n"},
            baseline_files={"README.md": "# webapp v1\n", "config/app.yaml": "debug: false\n"},
        )

        assert [c.file for c in plan.conflicts] == ["README.md"]

    def test_failing_pre_update_hook_rolls_back(self, project_dir, write_ritual):
        registry = TaskRegistry()
        registry.register("explode", FailingTask)
        service = UpdateService(project_dir, config=ToolConfig(), hook_registry=registry)
        inputs = service.prepare(write_ritual("1.1.0", V11_FILES, hooks={"pre_update": ["explode"]}))

        result = service.update(inputs.current_manifest, inputs.target_manifest,
                                inputs.current_files, inputs.target_files)

        assert result.status == OperationStatus.ROLLED_BACK
        assert result.error.code == "RT013"
        assert result.error.message == "hook 'explode' failed: boom"
        assert result.files_written == []
        assert (project_dir / "README.md").read_text() == "# webapp v1\n"

    def test_unregistered_pre_update_hook_warns(self, update_to, project_dir):
        result = update_to("1.1.0", hooks={"pre_update": ["go mod tidy"]})

        assert result.is_success
        assert "Pre-update hook go mod tidy skipped: no task registered" in result.warnings
        assert (project_dir / "README.md").read_text() == "# webapp v1.1\n"
        assert StateStore(project_dir).load().ritual_version == "1.1.0"

    def test_registered_pre_update_task_still_fails_next_to_unregistered(self, project_dir, write_ritual):
        registry = TaskRegistry()
        registry.register("explode", FailingTask)
        service = UpdateService(project_dir, config=ToolConfig(), hook_registry=registry)
        inputs = service.prepare(write_ritual("1.1.0", V11_FILES,
                                              hooks={"pre_update": ["go mod tidy", "explode"]}))

        result = service.update(inputs.current_manifest, inputs.target_manifest,
                                inputs.current_files, inputs.target_files)

        assert result.status == OperationStatus.ROLLED_BACK
        assert result.error.message == "hook 'explode' failed: boom"
