# ritual_tool/core/version_classifier.py
"""Classification of ritual version changes

Every function here takes already parsed versions; string parsing (and its
ParseError) belongs to the caller, see ``utils.version_utils.parse_version``.
"""

from typing import Iterable, List, Optional

from ..constants import UpdateType
from ..models.version import SemanticVersion, UpdateInfo


def is_update_available(current: SemanticVersion, candidate: SemanticVersion) -> bool:
    """True when candidate is strictly newer than current"""
    return candidate > current


def is_breaking(current: SemanticVersion, candidate: SemanticVersion) -> bool:
    """True when candidate raises the major component"""
    return candidate.major > current.major


def classify(current: SemanticVersion, target: SemanticVersion) -> UpdateInfo:
    """
    Classify the move from current to target

    The update type is the highest-order component that increased. Identical
    versions (or a move that changes nothing above the patch level) classify
    as a patch.

    Args:
        current: Installed version
        target: Version being moved to

    Returns:
        UpdateInfo
    """
    if target.major > current.major:
        update_type = UpdateType.MAJOR
    elif target.major == current.major and target.minor > current.minor:
        update_type = UpdateType.MINOR
    else:
        update_type = UpdateType.PATCH

    return UpdateInfo(
        from_version=current,
        to_version=target,
        update_type=update_type,
        breaking=is_breaking(current, target),
    )


def list_updates(current: SemanticVersion,
                 candidates: Iterable[SemanticVersion]) -> List[SemanticVersion]:
    """Candidates newer than current, newest first"""
    newer = [c for c in candidates if is_update_available(current, c)]
    return sorted(newer, reverse=True)


def latest_compatible(current: SemanticVersion,
                      candidates: Iterable[SemanticVersion]) -> Optional[SemanticVersion]:
    """Newest candidate that is an update but not a breaking one"""
    for candidate in list_updates(current, candidates):
        if not is_breaking(current, candidate):
            return candidate
    return None


class VersionClassifier:
    """Object facade over the module functions, for injection into services"""

    is_update_available = staticmethod(is_update_available)
    is_breaking = staticmethod(is_breaking)
    classify = staticmethod(classify)
    list_updates = staticmethod(list_updates)
    latest_compatible = staticmethod(latest_compatible)
