# ritual_tool/core/dependency_validator.py
"""Dependency cycle detection over composed rituals"""

import logging
from typing import Dict, List, Mapping, Optional, Set

from ..api.exceptions import CircularDependencyError
from ..models.manifest import RitualManifest

logger = logging.getLogger(__name__)


class CycleDetector:
    """Depth-first search for dependency cycles

    The graph maps a ritual name to its manifest; edges are the manifest's
    ``dependencies.rituals``. Names missing from the graph are skipped, they
    are reported by other checks.
    """

    def __init__(self, graph: Mapping[str, RitualManifest]):
        self.graph = graph
        self._visited: Set[str] = set()
        self._on_stack: Set[str] = set()
        self._path: List[str] = []

    def detect(self, start_id: str) -> Optional[List[str]]:
        """
        Search for a cycle reachable from start_id

        Returns:
            The cycle as a path whose first and last element are the same
            ritual (e.g. ``['a', 'b', 'a']``), or None when acyclic
        """
        self._visited.clear()
        self._on_stack.clear()
        self._path = []
        return self._visit(start_id)

    def _visit(self, node: str) -> Optional[List[str]]:
        manifest = self.graph.get(node)
        if manifest is None:
            return None

        self._visited.add(node)
        self._on_stack.add(node)
        self._path.append(node)

        for dependency in manifest.dependencies:
            if dependency in self._on_stack:
                start = self._path.index(dependency)
                return self._path[start:] + [dependency]
            if dependency not in self._visited:
                cycle = self._visit(dependency)
                if cycle:
                    return cycle

        self._path.pop()
        self._on_stack.discard(node)
        return None


def detect_cycle(graph: Mapping[str, RitualManifest], start_id: str) -> Optional[List[str]]:
    """Return a dependency cycle reachable from start_id, or None"""
    return CycleDetector(graph).detect(start_id)


def build_graph(manifest: RitualManifest,
                known_manifests: Optional[Mapping[str, RitualManifest]] = None) -> Dict[str, RitualManifest]:
    """Known manifests with the manifest under test merged in (it wins on name clashes)"""
    graph = dict(known_manifests or {})
    graph[manifest.name] = manifest
    return graph


def validate_no_cycles(manifest: RitualManifest,
                       known_manifests: Optional[Mapping[str, RitualManifest]] = None) -> None:
    """
    Raise if the manifest closes a dependency cycle

    Raises:
        CircularDependencyError: With the cycle path
    """
    cycle = detect_cycle(build_graph(manifest, known_manifests), manifest.name)
    if cycle:
        logger.debug("Cycle found for %s: %s", manifest.name, cycle)
        raise CircularDependencyError(manifest.name, cycle)
