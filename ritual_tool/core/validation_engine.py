# ritual_tool/core/validation_engine.py
"""Validation engine for ritual manifests"""

from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from ..__version__ import __version__
from ..api.exceptions import ParseError, ValidationError
from ..constants import VERSION_PATTERN, RITUAL_NAME_PATTERN
from ..models.manifest import RitualManifest
from ..utils.version_utils import parse_version, is_tool_compatible
from .dependency_validator import build_graph, detect_cycle
from .migration_runner import validate_migration


@dataclass
class ValidationResult:
    """Validation result container"""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    info: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add error message"""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add warning message"""
        self.warnings.append(message)

    def add_info(self, message: str) -> None:
        """Add info message"""
        self.info.append(message)

    def merge(self, other: 'ValidationResult') -> None:
        """Merge another result into this one"""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.info.extend(other.info)
        if not other.is_valid:
            self.is_valid = False


class ValidationEngine:
    """Checks run on a ritual manifest before any update starts"""

    def __init__(self, tool_version: str = __version__):
        self.tool_version = tool_version

    def validate_version(self, version: str) -> ValidationResult:
        """
        Validate version string

        Args:
            version: Version string to validate

        Returns:
            ValidationResult
        """
        result = ValidationResult()

        if not version:
            result.add_error("Version cannot be empty")
            return result

        match = VERSION_PATTERN.match(version)
        if not match:
            result.add_error(
                f"Invalid version format: '{version}'. "
                "Expected format: MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]"
            )
            return result

        result.add_info(f"Version: {match.group('major')}.{match.group('minor')}.{match.group('patch')}")

        if match.group('prerelease'):
            result.add_info(f"Pre-release: {match.group('prerelease')}")

        if match.group('build'):
            result.add_info(f"Build: {match.group('build')}")

        return result

    def validate_circular_dependencies(self, manifest: RitualManifest,
                                       known_manifests: Optional[Mapping[str, RitualManifest]] = None
                                       ) -> ValidationResult:
        """
        Check that the manifest does not close a dependency cycle

        The manifest is merged into the known set first, so a cycle it would
        introduce is found before it is stored anywhere.
        """
        result = ValidationResult()
        graph = build_graph(manifest, known_manifests)

        cycle = detect_cycle(graph, manifest.name)
        if cycle:
            result.add_error(
                f"circular dependency detected in ritual '{manifest.name}': {' -> '.join(cycle)}"
            )
            return result

        missing = [dep for dep in manifest.dependencies if dep not in graph]
        for dependency in missing:
            result.add_warning(f"Dependency '{dependency}' is not a known ritual")

        return result

    def validate_migrations(self, manifest: RitualManifest) -> ValidationResult:
        """Structural migration checks plus a warning for out-of-order declarations"""
        result = ValidationResult()

        previous = None
        for index, migration in enumerate(manifest.migrations, 1):
            for problem in validate_migration(migration):
                result.add_error(f"Migration #{index} ({migration.label}): {problem}")

            try:
                from_version = parse_version(migration.from_version)
                to_version = parse_version(migration.to_version)
            except ParseError as e:
                result.add_error(f"Migration #{index}: {e}")
                continue

            if to_version <= from_version:
                result.add_warning(f"Migration #{index} ({migration.label}) does not move forward")
            if previous is not None and to_version < previous:
                result.add_warning(
                    f"Migration #{index} ({migration.label}) is declared after a later "
                    "version and will run out of version order"
                )
            previous = to_version if previous is None else max(previous, to_version)

        return result

    def validate_compatibility(self, manifest: RitualManifest) -> ValidationResult:
        """Check the manifest supports the running tool version"""
        result = ValidationResult()
        compatibility = manifest.compatibility

        if not compatibility.min_tool_version and not compatibility.max_tool_version:
            return result

        try:
            compatible = is_tool_compatible(
                self.tool_version,
                compatibility.min_tool_version,
                compatibility.max_tool_version,
            )
        except ParseError as e:
            result.add_error(str(e))
            return result

        if not compatible:
            result.add_error(
                f"Ritual '{manifest.name}' requires ritual-tool "
                f"{compatibility.min_tool_version or '*'} - {compatibility.max_tool_version or '*'}, "
                f"running {self.tool_version}"
            )
        return result

    def validate_manifest(self, manifest: RitualManifest,
                          known_manifests: Optional[Mapping[str, RitualManifest]] = None
                          ) -> ValidationResult:
        """Run every manifest check and collect the results"""
        result = ValidationResult()

        if not manifest.name:
            result.add_error("Ritual name cannot be empty")
        elif not RITUAL_NAME_PATTERN.match(manifest.name):
            result.add_error(f"Invalid ritual name: '{manifest.name}'")

        result.merge(self.validate_version(manifest.version))
        result.merge(self.validate_compatibility(manifest))
        result.merge(self.validate_migrations(manifest))

        if manifest.name:
            result.merge(self.validate_circular_dependencies(manifest, known_manifests))

        return result

    def ensure_valid(self, manifest: RitualManifest,
                     known_manifests: Optional[Mapping[str, RitualManifest]] = None) -> ValidationResult:
        """
        Validate and raise on errors

        Raises:
            ValidationError: With every error found
        """
        result = self.validate_manifest(manifest, known_manifests)
        if not result.is_valid:
            raise ValidationError("; ".join(result.errors), result.errors)
        return result
