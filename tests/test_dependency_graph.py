"""Tests for the dependency graph engine."""

from codescope.graphs.dependency_graph import DependencyGraph
from codescope.graphs.models import CycleInfo, DependencyEdge, VersionConflict, VersionRequirement
from codescope.models import Dependency, DependencyType

PROD = DependencyType.PRODUCTION
DEV = DependencyType.DEVELOPMENT


def _graph(*names):
    graph = DependencyGraph()
    for name in names:
        graph.add_dependency(name, "1.0.0", PROD)
    return graph


def test_empty_graph():
    graph = DependencyGraph()
    assert graph.node_count() == 0
    assert graph.edge_count() == 0
    assert graph.is_empty()
    assert not graph.has_cycles()
    assert graph.detect_cycles() == []


def test_add_dependency_is_idempotent_by_name():
    graph = DependencyGraph()
    first = graph.add_dependency("react", "18.2.0", PROD)
    second = graph.add_dependency("react", "17.0.0", DEV)

    assert first is second
    assert graph.node_count() == 1
    assert graph.get_node("react").version == "18.2.0"
    assert graph.get_node("react").dep_type == PROD
    assert "react" in graph
    assert graph.contains("react")


def test_add_dependency_with_depth():
    graph = DependencyGraph()
    graph.add_dependency_with_depth("react", "18.2.0", PROD, 0)
    graph.add_dependency_with_depth("scheduler", "0.23.0", PROD, 1)

    assert [n.name for n in graph.get_nodes_at_depth(0)] == ["react"]
    assert [n.name for n in graph.get_nodes_at_depth(1)] == ["scheduler"]
    assert graph.add_dependency("scheduler", "0.23.0", PROD).depth == 1


def test_get_node_unknown_is_none():
    graph = _graph("react")
    assert graph.get_node("nonexistent") is None


def test_add_edge_requires_both_endpoints():
    graph = _graph("react-dom", "react")

    assert graph.add_edge("react-dom", "react")
    assert graph.edge_count() == 1

    assert not graph.add_edge("nonexistent", "react")
    assert not graph.add_edge("react", "nonexistent")
    assert graph.edge_count() == 1


def test_repeated_edge_is_kept():
    graph = _graph("a", "b")
    assert graph.add_edge("a", "b")
    assert graph.add_edge("a", "b")
    assert graph.edge_count() == 2
    assert len(graph.get_dependencies("a")) == 2


def test_optional_edges_carry_flag():
    graph = _graph("app", "fsevents", "lodash")
    graph.add_optional_edge("app", "fsevents")
    graph.add_edge_with_metadata("app", "lodash", DependencyEdge(is_optional=False))

    edges = {(a, b): e.is_optional for a, b, e in graph.edges()}
    assert edges == {("app", "fsevents"): True, ("app", "lodash"): False}


def test_get_dependencies_and_dependents():
    graph = _graph("my-app", "react", "react-dom", "lodash")
    graph.add_edge("my-app", "react")
    graph.add_edge("my-app", "lodash")
    graph.add_edge("react-dom", "react")

    assert {n.name for n in graph.get_dependencies("my-app")} == {"react", "lodash"}
    assert {n.name for n in graph.get_dependents("react")} == {"my-app", "react-dom"}
    assert graph.get_dependencies("nonexistent") == []
    assert graph.get_dependents("nonexistent") == []


def test_get_nodes_by_type():
    graph = DependencyGraph()
    graph.add_dependency("react", "18.2.0", PROD)
    graph.add_dependency("typescript", "5.0.0", DEV)
    graph.add_dependency("eslint", "8.0.0", DEV)

    assert [n.name for n in graph.get_nodes_by_type(PROD)] == ["react"]
    assert len(graph.get_nodes_by_type(DEV)) == 2
    assert len(graph.get_all_nodes()) == 3


def test_from_dependencies():
    graph = DependencyGraph.from_dependencies([
        Dependency("react", "18.2.0", PROD),
        Dependency("typescript", "5.0.0", DEV),
        Dependency("@types/react", "18.0.0", DEV),
        Dependency("react", "17.0.0", PROD),
    ])
    assert graph.node_count() == 3
    assert graph.edge_count() == 0


def test_no_cycle_in_chain():
    graph = _graph("a", "b", "c")
    graph.add_edge("a", "b")
    graph.add_edge("b", "c")

    assert not graph.has_cycles()
    assert graph.detect_cycles() == []
    assert graph.get_nodes_in_cycles() == set()


def test_three_node_cycle():
    graph = _graph("a", "b", "c")
    graph.add_edge("a", "b")
    graph.add_edge("b", "c")
    graph.add_edge("c", "a")

    assert graph.has_cycles()
    cycles = graph.detect_cycles()
    assert len(cycles) == 1
    assert sorted(cycles[0]) == ["a", "b", "c"]
    assert graph.get_nodes_in_cycles() == {"a", "b", "c"}


def test_self_loop_is_a_cycle():
    graph = _graph("self-ref", "plain")
    graph.add_edge("self-ref", "self-ref")

    assert graph.has_cycles()
    assert graph.detect_cycles() == [["self-ref"]]


def test_lone_nodes_are_never_cycles():
    graph = _graph("a", "b", "c")
    graph.add_edge("a", "b")
    assert graph.detect_cycles() == []


def test_separate_cycles_and_acyclic_tail():
    graph = _graph("a", "b", "c", "d", "e")
    graph.add_edge("a", "b")
    graph.add_edge("b", "a")
    graph.add_edge("b", "c")
    graph.add_edge("c", "d")
    graph.add_edge("d", "c")
    graph.add_edge("d", "e")

    cycles = sorted(sorted(c) for c in graph.detect_cycles())
    assert cycles == [["a", "b"], ["c", "d"]]
    assert "e" not in graph.get_nodes_in_cycles()


def test_long_chain_does_not_recurse():
    graph = DependencyGraph()
    n = 5000
    for i in range(n):
        graph.add_dependency(f"pkg-{i}", "1.0.0", PROD)
    for i in range(n - 1):
        graph.add_edge(f"pkg-{i}", f"pkg-{i + 1}")
    assert not graph.has_cycles()
    assert graph.detect_cycles() == []

    graph.add_edge(f"pkg-{n - 1}", "pkg-0")
    assert graph.has_cycles()
    assert len(graph.detect_cycles()[0]) == n


def test_cycle_details_and_path():
    graph = _graph("a", "b")
    graph.add_edge("a", "b")
    graph.add_edge("b", "a")

    details = graph.get_cycle_details()
    assert len(details) == 1
    assert len(details[0]) == 2
    path = details[0].cycle_path()
    first = details[0].nodes[0]
    assert path.startswith(first) and path.endswith(first)
    assert path.count(" -> ") == 2


def test_cycle_path_rendering():
    assert CycleInfo(["a", "b", "c"]).cycle_path() == "a -> b -> c -> a"
    assert CycleInfo(["a"]).cycle_path() == "a -> a"
    assert CycleInfo([]).cycle_path() == ""


def test_same_version_requirements_do_not_conflict():
    graph = DependencyGraph()
    graph.track_version_requirement("lodash", "^4.17.0", "app-a")
    graph.track_version_requirement("lodash", "^4.17.0", "app-b")

    assert graph.detect_version_conflicts() == []
    assert not graph.has_version_conflicts()
    assert len(graph.get_version_requirements("lodash")) == 2


def test_different_version_requirements_conflict():
    graph = DependencyGraph()
    graph.track_version_requirement("lodash", "^4.17.0", "app-a")
    graph.track_version_requirement("lodash", "^4.16.0", "app-b")

    conflicts = graph.detect_version_conflicts()
    assert len(conflicts) == 1
    conflict = conflicts[0]
    assert conflict.package_name == "lodash"
    assert conflict.requirements == [
        VersionRequirement("^4.17.0", "app-a"),
        VersionRequirement("^4.16.0", "app-b"),
    ]
    assert graph.get_packages_with_conflicts() == {"lodash"}


def test_single_requirement_never_conflicts():
    graph = DependencyGraph()
    graph.track_version_requirement("react", "^18.0.0", "app")
    assert graph.detect_version_conflicts() == []
    assert graph.get_version_requirements("unknown") == []


def test_conflict_comparison_is_literal():
    graph = DependencyGraph()
    graph.track_version_requirement("react", "^18.0.0", "a")
    graph.track_version_requirement("react", "^18.0", "b")
    assert graph.get_packages_with_conflicts() == {"react"}


def test_conflict_description():
    conflict = VersionConflict("lodash", [
        VersionRequirement("^4.17.0", "app-a"),
        VersionRequirement("^4.16.0", "app-b"),
    ])
    assert conflict.description() == "lodash requires: ^4.17.0 (by app-a), ^4.16.0 (by app-b)"
    assert len(conflict) == 2
    assert conflict.versions() == ["^4.17.0", "^4.16.0"]


def test_apply_bundle_sizes():
    graph = _graph("react", "lodash", "moment")
    updated = graph.apply_bundle_sizes({
        "react": (6_000, 3),
        "lodash": (70_000, 600),
        "not-in-graph": (1, 1),
    })

    assert updated == 2
    assert graph.get_node("lodash").bundle_size == 70_000
    assert graph.get_node("lodash").module_count == 600
    assert not graph.get_node("moment").has_bundle_size()
    assert graph.total_bundle_size() == 76_000
    assert [n.name for n in graph.get_nodes_by_bundle_size()] == ["lodash", "react"]


def test_to_dict_shape():
    graph = _graph("a", "b")
    graph.add_edge("a", "b")
    graph.add_edge("b", "a")
    graph.track_version_requirement("b", "1", "a")
    graph.track_version_requirement("b", "2", "c")

    data = graph.to_dict()
    assert len(data["nodes"]) == 2
    assert data["edges"][0] == {"from": "a", "to": "b", "optional": False}
    assert len(data["cycles"]) == 1
    assert data["version_conflicts"][0]["package_name"] == "b"
