"""Tests for deployment planning."""

import pytest

from ritual_tool.api.exceptions import ParseError
from ritual_tool.constants import StepType
from ritual_tool.core.deployment_planner import (
    DeploymentPlanner,
    order_migrations,
    pending_migrations,
)
from ritual_tool.models import DeploymentPlan, FileMapping


def templates(*dests):
    return [FileMapping(src=f"templates/{dest}", dest=dest) for dest in dests]


class TestAnalyze:
    """Plan construction."""

    def test_step_order(self, make_manifest, make_migration):
        current = make_manifest("1.0.0", templates=templates("README.md"))
        target = make_manifest(
            "1.2.0",
            templates=templates("README.md", "docs/guide.md"),
            migrations=[make_migration("1.0.0", "1.1.0"), make_migration("1.1.0", "1.2.0")],
            hooks={"post_update": ["notify"]},
        )

        plan = DeploymentPlanner().analyze(current, target)

        assert [step.type for step in plan.steps] == [
            StepType.BACKUP,
            StepType.UPDATE_FILES,
            StepType.MIGRATION,
            StepType.MIGRATION,
            StepType.RUN_HOOKS,
            StepType.VALIDATION,
        ]
        assert plan.migrations_to_run == ["1.1.0", "1.2.0"]
        assert plan.find_steps(StepType.RUN_HOOKS)[0].required is False
        assert all(step.required for step in plan.steps if step.type != StepType.RUN_HOOKS)

    def test_no_file_step_without_file_changes(self, make_manifest):
        plan = DeploymentPlanner().analyze(
            make_manifest("1.0.0"), make_manifest("1.0.1"),
            current_files={"a": "1"}, target_files={"a": "1"},
        )
        assert [step.type for step in plan.steps] == [StepType.BACKUP, StepType.VALIDATION]

    def test_file_step_describes_counts(self, make_manifest):
        plan = DeploymentPlanner().analyze(
            make_manifest("1.0.0"), make_manifest("1.1.0"),
            current_files={"a": "1", "b": "1"},
            target_files={"a": "2", "c": "1"},
        )
        assert plan.files_added == ["c"]
        assert plan.files_modified == ["a"]
        assert plan.files_deleted == ["b"]
        assert plan.find_steps(StepType.UPDATE_FILES)[0].description == "Update 1 files, add 1 new files"

    def test_mapping_mode_compares_destinations(self, make_manifest):
        current = make_manifest("1.0.0", templates=templates("a", "b"))
        target = make_manifest("1.1.0", templates=templates("b", "c"))

        plan = DeploymentPlanner().analyze(current, target)

        assert plan.files_added == ["c"]
        assert plan.files_modified == ["b"]
        assert plan.files_deleted == ["a"]

    def test_breaking_update_conflict(self, make_manifest):
        plan = DeploymentPlanner().analyze(make_manifest("1.0.0"), make_manifest("2.0.0"))

        conflict = plan.conflict_for("version")
        assert conflict is not None
        assert "breaking changes" in conflict.reason
        assert conflict.resolution == "Review changelog and test thoroughly"
        assert plan.requires_manual_intervention

    def test_minor_update_has_no_conflict(self, make_manifest):
        plan = DeploymentPlanner().analyze(make_manifest("1.0.0"), make_manifest("1.5.0"))
        assert plan.conflicts == []
        assert not plan.requires_manual_intervention

    def test_protected_files_become_conflicts(self, make_manifest):
        target = make_manifest("1.1.0", protected=["config/*.yaml"])
        plan = DeploymentPlanner().analyze(
            make_manifest("1.0.0"), target,
            current_files={"config/app.yaml": "mine", ".env": "A=1"},
            target_files={"config/app.yaml": "theirs", ".env": "A=2"},
            protected_patterns=["*.env"],
        )
        assert [c.file for c in plan.conflicts] == [".env", "config/app.yaml"]
        assert plan.files_modified == []

    def test_applied_migrations_skipped(self, make_manifest, make_migration):
        target = make_manifest("1.2.0", migrations=[
            make_migration("1.0.0", "1.1.0"),
            make_migration("1.1.0", "1.2.0"),
        ])
        plan = DeploymentPlanner().analyze(make_manifest("1.1.0"), target, applied_migrations=["1.1.0"])
        assert plan.migrations_to_run == ["1.2.0"]

    def test_version_order(self, make_manifest, make_migration):
        target = make_manifest("1.2.0", migrations=[
            make_migration("1.1.0", "1.2.0"),
            make_migration("1.0.0", "1.1.0"),
        ])
        manifest_order = DeploymentPlanner().analyze(make_manifest("1.0.0"), target)
        version_order = DeploymentPlanner(migration_order="version").analyze(make_manifest("1.0.0"), target)

        assert manifest_order.migrations_to_run == ["1.2.0", "1.1.0"]
        assert version_order.migrations_to_run == ["1.1.0", "1.2.0"]

    def test_malformed_version(self, make_manifest):
        with pytest.raises(ParseError):
            DeploymentPlanner().analyze(make_manifest("1.0"), make_manifest("1.1.0"))


class TestDetectConflicts:
    """Manual modification conflicts."""

    def test_intersection_only(self):
        conflicts = DeploymentPlanner().detect_conflicts(
            ["README.md", "local.txt", "app.py"],
            ["app.py", "README.md", "new.py"],
        )
        assert [c.file for c in conflicts] == ["README.md", "app.py"]
        assert all(c.reason == "File was manually modified and will be updated" for c in conflicts)

    def test_no_overlap(self):
        assert DeploymentPlanner().detect_conflicts(["a"], ["b"]) == []


class TestEstimateDuration:
    """Duration estimates."""

    def test_defaults_per_step_type(self, make_manifest, make_migration):
        target = make_manifest(
            "1.1.0",
            templates=templates("README.md"),
            migrations=[make_migration("1.0.0", "1.1.0")],
            hooks={"post_update": ["notify"]},
        )
        plan = DeploymentPlanner().analyze(make_manifest("1.0.0"), target)

        # backup 5 + files 2 + migration 10 + hooks 3 + validation 2
        assert plan.estimated_duration == 22

    def test_explicit_estimates_and_unknown_types(self):
        plan = DeploymentPlan(current_version="1.0.0", target_version="1.0.1")
        plan.add_step(StepType.BACKUP, "backup", estimated_duration=30)
        plan.add_step(StepType.ROLLBACK, "rollback")

        assert DeploymentPlanner().estimate_duration(plan) == 31
        assert plan.estimated_duration == 31

    def test_monotonic_as_steps_are_appended(self):
        planner = DeploymentPlanner()
        plan = DeploymentPlan(current_version="1.0.0", target_version="1.0.1")
        previous = planner.estimate_duration(plan)

        for step_type in StepType:
            plan.add_step(step_type, step_type.value)
            current = planner.estimate_duration(plan)
            assert current >= previous
            previous = current


class TestReport:
    """Plain text rendering."""

    def test_report_format(self, make_manifest, make_migration):
        current = make_manifest("1.0.0", templates=templates("README.md"))
        target = make_manifest(
            "1.1.0",
            templates=templates("README.md", "docs/guide.md"),
            migrations=[make_migration("1.0.0", "1.1.0")],
        )
        planner = DeploymentPlanner()

        report = planner.generate_report(planner.analyze(current, target))

        assert report == (
            "=== Deployment Plan ===\n"
            "\n"
            "Current Version: 1.0.0\n"
            "Target Version:  1.1.0\n"
            "Estimated Duration: 19s\n"
            "\n"
            "Files to Add (1):\n"
            "  + docs/guide.md\n"
            "\n"
            "Files to Modify (1):\n"
            "  ~ README.md\n"
            "\n"
            "Migrations to Run (1):\n"
            "  → 1.1.0\n"
            "\n"
            "Deployment Steps:\n"
            "  1. Create backup of current project state [required]\n"
            "  2. Update 1 files, add 1 new files [required]\n"
            "  3. Run migration 1.0.0 -> 1.1.0 [required]\n"
            "  4. Validate deployment success [required]\n"
            "\n"
            "===\n"
        )

    def test_report_lists_conflicts(self, make_manifest):
        planner = DeploymentPlanner()
        report = planner.generate_report(planner.analyze(make_manifest("1.0.0"), make_manifest("2.0.0")))

        assert "⚠ Potential Conflicts (1):" in report
        assert "  • version: Major version change from 1.0.0 to 2.0.0 indicates breaking changes" in report
        assert "    Resolution: Review changelog and test thoroughly" in report


class TestJson:
    """Machine-readable plan document."""

    def test_json_fields(self, make_manifest):
        plan = DeploymentPlanner().analyze(
            make_manifest("1.0.0"), make_manifest("2.0.0"),
            current_files={"a": "1", "b": "1"},
            target_files={"a": "2", "c": "1"},
        )

        assert plan.to_json_dict() == {
            "current_version": "1.0.0",
            "target_version": "2.0.0",
            "files": {"to_add": ["c"], "to_modify": ["a"], "to_delete": ["b"]},
            "migrations": [],
            "conflicts": ["version"],
            "estimated_duration_seconds": 9,
            "requires_manual_intervention": True,
        }


class TestMigrationHelpers:
    """Ordering and filtering helpers."""

    def test_unknown_order(self, make_migration):
        with pytest.raises(ValueError):
            order_migrations([make_migration("1.0.0", "1.1.0")], "alphabetical")

    def test_version_sort_is_semantic(self, make_migration):
        migrations = [make_migration("1.9.0", "1.10.0"), make_migration("1.8.0", "1.9.0")]
        ordered = order_migrations(migrations, "version")
        assert [m.to_version for m in ordered] == ["1.9.0", "1.10.0"]

    def test_pending_keeps_order(self, make_migration):
        migrations = [make_migration("1.0.0", "1.1.0"), make_migration("1.1.0", "1.2.0")]
        assert pending_migrations(migrations, None) == migrations
        assert pending_migrations(migrations, ["1.1.0"]) == migrations[1:]
