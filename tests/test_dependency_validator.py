"""Tests for ritual dependency cycle detection."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from ritual_tool.api.exceptions import CircularDependencyError, ValidationError
from ritual_tool.core.dependency_validator import (
    CycleDetector,
    build_graph,
    detect_cycle,
    validate_no_cycles,
)
from ritual_tool.models import RitualManifest


def graph_of(edges):
    return {
        name: RitualManifest(name=name, version="1.0.0", rituals=list(deps))
        for name, deps in edges.items()
    }


class TestDetectCycle:
    """Depth-first cycle search."""

    def test_two_node_cycle(self):
        graph = graph_of({"a": ["b"], "b": ["a"]})
        assert detect_cycle(graph, "a") == ["a", "b", "a"]

    def test_self_dependency(self):
        graph = graph_of({"a": ["a"]})
        assert detect_cycle(graph, "a") == ["a", "a"]

    def test_cycle_not_through_start(self):
        graph = graph_of({"a": ["b"], "b": ["c"], "c": ["b"]})
        assert detect_cycle(graph, "a") == ["b", "c", "b"]

    def test_diamond_is_acyclic(self):
        graph = graph_of({"a": ["b", "c"], "b": ["d"], "c": ["d"], "d": []})
        assert detect_cycle(graph, "a") is None

    def test_unknown_dependencies_skipped(self):
        graph = graph_of({"a": ["missing"]})
        assert detect_cycle(graph, "a") is None

    def test_unknown_start(self):
        assert detect_cycle({}, "nothing") is None

    def test_detector_reusable(self):
        detector = CycleDetector(graph_of({"a": ["b"], "b": ["a"], "c": []}))
        assert detector.detect("c") is None
        assert detector.detect("a") == ["a", "b", "a"]


class TestValidateNoCycles:
    """Cycle validation against known manifests."""

    def test_raises_with_path(self):
        known = graph_of({"base": ["webapp"]})
        manifest = RitualManifest(name="webapp", version="1.0.0", rituals=["base"])

        with pytest.raises(CircularDependencyError) as exc_info:
            validate_no_cycles(manifest, known)

        error = exc_info.value
        assert isinstance(error, ValidationError)
        assert error.cycle == ["webapp", "base", "webapp"]
        assert error.error_code == "RT006"
        assert str(error) == "circular dependency detected in ritual 'webapp': webapp -> base -> webapp"

    def test_manifest_under_test_replaces_known_version(self):
        known = graph_of({"webapp": ["base"], "base": []})
        manifest = RitualManifest(name="webapp", version="2.0.0")

        graph = build_graph(manifest, known)

        assert graph["webapp"] is manifest
        validate_no_cycles(manifest, known)


@st.composite
def dags(draw):
    """Graphs whose edges only point to lower-numbered nodes."""
    size = draw(st.integers(min_value=1, max_value=8))
    edges = {}
    for index in range(size):
        targets = draw(st.lists(st.integers(min_value=0, max_value=max(index - 1, 0)), max_size=3))
        edges[f"r{index}"] = [f"r{t}" for t in targets if t < index]
    return edges


class TestAcyclicProperty:
    """Cycle detection over generated graphs."""

    @given(edges=dags())
    def test_dag_has_no_cycle(self, edges):
        graph = graph_of(edges)
        for name in edges:
            assert detect_cycle(graph, name) is None

    @given(edges=dags())
    def test_back_edge_closes_cycle_when_reachable(self, edges):
        # Adding r0 -> top closes a loop exactly when top already reaches r0
        top = f"r{len(edges) - 1}"
        edges = {name: list(deps) for name, deps in edges.items()}
        edges["r0"] = edges["r0"] + [top]

        cycle = detect_cycle(graph_of(edges), "r0")

        if top == "r0" or _reaches(edges, top, "r0"):
            assert cycle is not None
            assert cycle[0] == cycle[-1]
        else:
            assert cycle is None


def _reaches(edges, start, goal):
    seen, stack = set(), [start]
    while stack:
        node = stack.pop()
        if node == goal:
            return True
        if node not in seen:
            seen.add(node)
            stack.extend(edges.get(node, []))
    return False
