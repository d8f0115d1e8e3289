"""Semantic version model"""

from dataclasses import dataclass, field
from functools import total_ordering
from typing import Optional, Tuple, Union

from ..api.exceptions import ParseError
from ..constants import VERSION_PATTERN, UpdateType


def _prerelease_key(prerelease: Optional[str]) -> Tuple:
    # A release sorts above any of its pre-releases
    if not prerelease:
        return (1,)

    parts = []
    for identifier in prerelease.split('.'):
        if identifier.isdigit():
            parts.append((0, int(identifier), ""))
        else:
            parts.append((1, 0, identifier))
    return (0, tuple(parts))


@total_ordering
@dataclass(frozen=True)
class SemanticVersion:
    """Immutable semantic version, ordered by semver precedence

    Build metadata is kept for display but ignored for equality and ordering.
    """
    major: int
    minor: int
    patch: int
    prerelease: Optional[str] = None
    build: Optional[str] = field(default=None, compare=False)

    @classmethod
    def parse(cls, value: Union[str, 'SemanticVersion']) -> 'SemanticVersion':
        """Parse a version string

        Args:
            value: Version string, optionally prefixed with 'v'

        Returns:
            SemanticVersion

        Raises:
            ParseError: If the string is not a semantic version
        """
        if isinstance(value, SemanticVersion):
            return value
        if not isinstance(value, str):
            raise ParseError(str(value))

        match = VERSION_PATTERN.match(value.strip())
        if not match:
            raise ParseError(value)

        return cls(
            major=int(match.group('major')),
            minor=int(match.group('minor')),
            patch=int(match.group('patch')),
            prerelease=match.group('prerelease'),
            build=match.group('build'),
        )

    @property
    def core(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def _sort_key(self) -> Tuple:
        return (self.core, _prerelease_key(self.prerelease))

    def __lt__(self, other: 'SemanticVersion') -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __str__(self) -> str:
        version = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            version += f"-{self.prerelease}"
        if self.build:
            version += f"+{self.build}"
        return version


@dataclass(frozen=True)
class UpdateInfo:
    """Classification of a move between two versions"""
    from_version: SemanticVersion
    to_version: SemanticVersion
    update_type: UpdateType
    breaking: bool

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'from': str(self.from_version),
            'to': str(self.to_version),
            'type': self.update_type.value,
            'breaking': self.breaking,
        }
