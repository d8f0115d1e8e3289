# ritual_tool/core/deployment_planner.py
"""Deployment planning between two ritual versions"""

import logging
from typing import Dict, Iterable, List, Optional

from ..constants import (
    StepType,
    MIGRATION_ORDER_MANIFEST,
    MIGRATION_ORDER_VERSION,
    MIGRATION_ORDERS,
    BREAKING_CHANGE_REASON,
    BREAKING_CHANGE_RESOLUTION,
    MANUAL_MODIFICATION_REASON,
    MANUAL_MODIFICATION_RESOLUTION,
    PROTECTED_FILE_REASON,
    PROTECTED_FILE_RESOLUTION,
    EMOJI_ARROW,
    EMOJI_BULLET,
    EMOJI_WARNING,
)
from ..models.manifest import RitualManifest
from ..models.migration import Migration
from ..models.plan import DeploymentPlan, Conflict
from ..utils.formatting import format_plan_duration
from ..utils.version_utils import parse_version
from .changeset_analyzer import ChangeSetAnalyzer, FileContent
from .version_classifier import is_breaking

logger = logging.getLogger(__name__)


def order_migrations(migrations: Iterable[Migration], order: str = MIGRATION_ORDER_MANIFEST) -> List[Migration]:
    """
    Order migrations for execution

    Args:
        migrations: Migrations in manifest order
        order: "manifest" keeps the declared order, "version" sorts by
            target version (stable for equal versions)

    Raises:
        ValueError: For an unknown order
        ParseError: When sorting by version and a version is malformed
    """
    if order not in MIGRATION_ORDERS:
        raise ValueError(f"Unknown migration order: {order}")

    migrations = list(migrations)
    if order == MIGRATION_ORDER_VERSION:
        migrations.sort(key=lambda m: (parse_version(m.to_version), parse_version(m.from_version)))
    return migrations


def pending_migrations(migrations: Iterable[Migration],
                       applied_versions: Optional[Iterable[str]] = None) -> List[Migration]:
    """Drop migrations whose target version is already applied, keeping order"""
    applied = set(applied_versions or [])
    return [m for m in migrations if m.to_version not in applied]


class DeploymentPlanner:
    """Build ordered deployment plans"""

    def __init__(self,
                 analyzer: Optional[ChangeSetAnalyzer] = None,
                 migration_order: str = MIGRATION_ORDER_MANIFEST):
        self.analyzer = analyzer or ChangeSetAnalyzer()
        self.migration_order = migration_order

    def analyze(self,
                current_manifest: RitualManifest,
                target_manifest: RitualManifest,
                current_files: Optional[Dict[str, FileContent]] = None,
                target_files: Optional[Dict[str, FileContent]] = None,
                protected_patterns: Optional[Iterable[str]] = None,
                applied_migrations: Optional[Iterable[str]] = None) -> DeploymentPlan:
        """
        Plan the update from current_manifest to target_manifest

        When both content maps are given the file lists come from a content
        diff and protected files that would change become conflicts. Without
        them, files are compared by template destination only, and every
        destination present in both versions counts as modified.

        Args:
            current_manifest: Manifest of the installed version
            target_manifest: Manifest of the version to move to
            current_files: Project files by destination
            target_files: Target template files by destination
            protected_patterns: Extra protected patterns (the target
                manifest's own patterns are always included)
            applied_migrations: Target versions of migrations already applied

        Returns:
            DeploymentPlan with its duration estimated

        Raises:
            ParseError: If either manifest version is malformed
        """
        current_version = parse_version(current_manifest.version)
        target_version = parse_version(target_manifest.version)

        plan = DeploymentPlan(
            current_version=current_manifest.version,
            target_version=target_manifest.version,
        )

        if is_breaking(current_version, target_version):
            plan.conflicts.append(Conflict(
                file="version",
                reason=BREAKING_CHANGE_REASON.format(
                    current=current_manifest.version, target=target_manifest.version
                ),
                resolution=BREAKING_CHANGE_RESOLUTION,
            ))

        patterns = list(target_manifest.protected) + list(protected_patterns or [])
        if current_files is not None and target_files is not None:
            self._plan_from_contents(plan, current_files, target_files, patterns)
        else:
            self._plan_from_mappings(plan, current_manifest, target_manifest)

        # 1. Backup always comes first
        plan.add_step(StepType.BACKUP, "Create backup of current project state")

        # 2. File updates
        if plan.files_added or plan.files_modified:
            plan.add_step(
                StepType.UPDATE_FILES,
                f"Update {len(plan.files_modified)} files, "
                f"add {len(plan.files_added)} new files",
            )

        # 3. Migrations
        migrations = pending_migrations(
            order_migrations(target_manifest.migrations, self.migration_order),
            applied_migrations,
        )
        for migration in migrations:
            plan.add_step(
                StepType.MIGRATION,
                f"Run migration {migration.from_version} -> {migration.to_version}",
            )
            plan.migrations_to_run.append(migration.to_version)

        # 4. Hooks
        if target_manifest.post_update_hooks:
            plan.add_step(StepType.RUN_HOOKS, "Execute post-update hooks", required=False)

        # 5. Validation always comes last
        plan.add_step(StepType.VALIDATION, "Validate deployment success")

        self.estimate_duration(plan)

        logger.info(
            "Planned %s -> %s: %d steps, %d conflicts",
            plan.current_version, plan.target_version, len(plan.steps), len(plan.conflicts)
        )
        return plan

    def _plan_from_contents(self, plan: DeploymentPlan,
                            current_files: Dict[str, FileContent],
                            target_files: Dict[str, FileContent],
                            patterns: List[str]) -> None:
        changes = self.analyzer.diff(current_files, target_files, patterns)
        plan.files_added = changes.added
        plan.files_modified = changes.modified
        plan.files_deleted = changes.deleted
        for name in changes.conflicts:
            plan.conflicts.append(Conflict(
                file=name,
                reason=PROTECTED_FILE_REASON,
                resolution=PROTECTED_FILE_RESOLUTION,
            ))

    def _plan_from_mappings(self, plan: DeploymentPlan,
                            current_manifest: RitualManifest,
                            target_manifest: RitualManifest) -> None:
        current = set(current_manifest.template_destinations())
        target = set(target_manifest.template_destinations())
        plan.files_added = sorted(target - current)
        plan.files_modified = sorted(target & current)
        plan.files_deleted = sorted(current - target)

    def detect_conflicts(self, modified_files: Iterable[str], target_files: Iterable[str]) -> List[Conflict]:
        """
        Flag files the user changed that the update is about to touch

        Args:
            modified_files: Files manually modified in the project
            target_files: Files the update will write

        Returns:
            One Conflict per file in both sets, sorted by file name
        """
        touched = set(target_files)
        return [
            Conflict(
                file=name,
                reason=MANUAL_MODIFICATION_REASON,
                resolution=MANUAL_MODIFICATION_RESOLUTION,
            )
            for name in sorted(set(modified_files))
            if name in touched
        ]

    def estimate_duration(self, plan: DeploymentPlan) -> float:
        """Sum step estimates into plan.estimated_duration and return it"""
        plan.estimated_duration = sum(step.effective_duration for step in plan.steps)
        return plan.estimated_duration

    def generate_report(self, plan: DeploymentPlan) -> str:
        """Render a plan as plain text"""
        lines = [
            "=== Deployment Plan ===",
            "",
            f"Current Version: {plan.current_version}",
            f"Target Version:  {plan.target_version}",
            f"Estimated Duration: {format_plan_duration(plan.estimated_duration)}",
            "",
        ]

        for title, marker, files in (
            ("Files to Add", "+", plan.files_added),
            ("Files to Modify", "~", plan.files_modified),
            ("Files to Delete", "-", plan.files_deleted),
        ):
            if files:
                lines.append(f"{title} ({len(files)}):")
                lines.extend(f"  {marker} {name}" for name in files)
                lines.append("")

        if plan.migrations_to_run:
            lines.append(f"Migrations to Run ({len(plan.migrations_to_run)}):")
            lines.extend(f"  {EMOJI_ARROW} {version}" for version in plan.migrations_to_run)
            lines.append("")

        lines.append("Deployment Steps:")
        for index, step in enumerate(plan.steps, 1):
            required = " [required]" if step.required else ""
            lines.append(f"  {index}. {step.description}{required}")
        lines.append("")

        if plan.conflicts:
            lines.append(f"{EMOJI_WARNING} Potential Conflicts ({len(plan.conflicts)}):")
            for conflict in plan.conflicts:
                lines.append(f"  {EMOJI_BULLET} {conflict.file}: {conflict.reason}")
                if conflict.resolution:
                    lines.append(f"    Resolution: {conflict.resolution}")
            lines.append("")

        lines.append("===")
        return "\n".join(lines) + "\n"
