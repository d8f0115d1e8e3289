"""Version management utilities"""

from typing import Iterable, List, Optional, Union

from packaging.version import parse, InvalidVersion

from ..api.exceptions import ParseError
from ..models.version import SemanticVersion

VersionLike = Union[str, SemanticVersion]


def parse_version(version: VersionLike) -> SemanticVersion:
    """
    Parse a semantic version string

    Args:
        version: Version string or already parsed version

    Returns:
        SemanticVersion

    Raises:
        ParseError: If the string is malformed
    """
    return SemanticVersion.parse(version)


def is_valid_version(version: str) -> bool:
    """Check whether a string is a valid semantic version"""
    try:
        parse_version(version)
    except ParseError:
        return False
    return True


def compare_versions(version1: VersionLike, version2: VersionLike) -> int:
    """
    Compare two versions

    Args:
        version1: First version
        version2: Second version

    Returns:
        -1 if version1 < version2, 0 if equal, 1 if version1 > version2
    """
    v1 = parse_version(version1)
    v2 = parse_version(version2)

    if v1 < v2:
        return -1
    elif v1 > v2:
        return 1
    else:
        return 0


def sort_versions(versions: Iterable[VersionLike], reverse: bool = False) -> List[str]:
    """
    Sort version strings by semantic precedence

    Args:
        versions: Versions to sort
        reverse: Sort in descending order

    Returns:
        Sorted version strings
    """
    return [str(v) for v in sorted((parse_version(v) for v in versions), reverse=reverse)]


def is_tool_compatible(tool_version: str,
                       min_version: Optional[str] = None,
                       max_version: Optional[str] = None) -> bool:
    """
    Check an installed tool version against a manifest's supported range

    Bounds use PEP 440 comparison so that ranges like ">= 0.4" work with
    development builds of the tool. Both bounds are inclusive.

    Raises:
        ParseError: If any of the versions cannot be parsed
    """
    try:
        current = parse(tool_version)
        if min_version and current < parse(str(min_version)):
            return False
        if max_version and current > parse(str(max_version)):
            return False
    except InvalidVersion as e:
        raise ParseError(str(e), f"Invalid tool version constraint: {e}") from e
    return True
