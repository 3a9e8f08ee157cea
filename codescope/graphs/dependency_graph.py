"""Directed package dependency graph.

Nodes live in an arena (a list) and are addressed by name through a
name -> index map; edges reference arena indices. Cycles are a detected
condition, not an invalid state, so nothing here refuses a cyclic edge.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple

from ..models import Dependency, DependencyType
from .models import CycleInfo, DependencyEdge, DependencyNode, VersionConflict, VersionRequirement


class DependencyGraph:
    """As-declared dependency relationships between packages."""

    def __init__(self):
        self._nodes: List[DependencyNode] = []
        self._node_indices: Dict[str, int] = {}
        # (source index, target index, metadata); parallel edges are kept
        self._edges: List[Tuple[int, int, DependencyEdge]] = []
        self._outgoing: List[List[int]] = []
        self._incoming: List[List[int]] = []
        self._version_requirements: Dict[str, List[VersionRequirement]] = defaultdict(list)

    @classmethod
    def from_dependencies(cls, deps: Iterable[Dependency]) -> "DependencyGraph":
        graph = cls()
        for dep in deps:
            graph.add_dependency(dep.name, dep.version, dep.dep_type)
        return graph

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_dependency(
        self,
        name: str,
        version: str,
        dep_type: DependencyType = DependencyType.PRODUCTION,
    ) -> DependencyNode:
        """Add a direct dependency; returns the existing node if *name* is known."""
        return self.add_dependency_with_depth(name, version, dep_type, 0)

    def add_dependency_with_depth(
        self,
        name: str,
        version: str,
        dep_type: DependencyType,
        depth: int,
    ) -> DependencyNode:
        idx = self._node_indices.get(name)
        if idx is not None:
            return self._nodes[idx]

        node = DependencyNode(name=name, version=version, dep_type=dep_type, depth=depth)
        self._node_indices[name] = len(self._nodes)
        self._nodes.append(node)
        self._outgoing.append([])
        self._incoming.append([])
        return node

    def add_edge(self, from_name: str, to_name: str) -> bool:
        return self.add_edge_with_metadata(from_name, to_name, DependencyEdge())

    def add_optional_edge(self, from_name: str, to_name: str) -> bool:
        return self.add_edge_with_metadata(from_name, to_name, DependencyEdge.optional())

    def add_edge_with_metadata(self, from_name: str, to_name: str, edge: DependencyEdge) -> bool:
        """Add *from_name* -> *to_name*.

        Returns False, leaving the graph untouched, if either endpoint has
        not been added yet. Repeating an edge adds a parallel edge.
        """
        from_idx = self._node_indices.get(from_name)
        to_idx = self._node_indices.get(to_name)
        if from_idx is None or to_idx is None:
            return False

        edge_idx = len(self._edges)
        self._edges.append((from_idx, to_idx, edge))
        self._outgoing[from_idx].append(edge_idx)
        self._incoming[to_idx].append(edge_idx)
        return True

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_node(self, name: str) -> Optional[DependencyNode]:
        idx = self._node_indices.get(name)
        return self._nodes[idx] if idx is not None else None

    def get_dependencies(self, name: str) -> List[DependencyNode]:
        idx = self._node_indices.get(name)
        if idx is None:
            return []
        return [self._nodes[self._edges[e][1]] for e in self._outgoing[idx]]

    def get_dependents(self, name: str) -> List[DependencyNode]:
        idx = self._node_indices.get(name)
        if idx is None:
            return []
        return [self._nodes[self._edges[e][0]] for e in self._incoming[idx]]

    def get_all_nodes(self) -> List[DependencyNode]:
        return list(self._nodes)

    def nodes(self) -> Iterator[DependencyNode]:
        return iter(self._nodes)

    def edges(self) -> Iterator[Tuple[str, str, DependencyEdge]]:
        for from_idx, to_idx, edge in self._edges:
            yield self._nodes[from_idx].name, self._nodes[to_idx].name, edge

    def get_nodes_by_type(self, dep_type: DependencyType) -> List[DependencyNode]:
        return [n for n in self._nodes if n.dep_type == dep_type]

    def get_nodes_at_depth(self, depth: int) -> List[DependencyNode]:
        return [n for n in self._nodes if n.depth == depth]

    def node_count(self) -> int:
        return len(self._nodes)

    def edge_count(self) -> int:
        return len(self._edges)

    def is_empty(self) -> bool:
        return not self._nodes

    def contains(self, name: str) -> bool:
        return name in self._node_indices

    def __contains__(self, name: object) -> bool:
        return name in self._node_indices

    def __len__(self) -> int:
        return len(self._nodes)

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    def has_cycles(self) -> bool:
        """Three-colour DFS; a self-loop counts as a cycle."""
        WHITE, GREY, BLACK = 0, 1, 2
        colour = [WHITE] * len(self._nodes)

        for start in range(len(self._nodes)):
            if colour[start] != WHITE:
                continue
            colour[start] = GREY
            stack = [(start, iter(self._successors(start)))]
            while stack:
                node, successors = stack[-1]
                advanced = False
                for succ in successors:
                    if colour[succ] == GREY:
                        return True
                    if colour[succ] == WHITE:
                        colour[succ] = GREY
                        stack.append((succ, iter(self._successors(succ))))
                        advanced = True
                        break
                if not advanced:
                    colour[node] = BLACK
                    stack.pop()
        return False

    def detect_cycles(self) -> List[List[str]]:
        """Strongly connected components that represent cycles.

        Components with more than one member are always reported; a single
        node is reported only if it has an edge to itself.
        """
        cycles: List[List[str]] = []
        for scc in self._strongly_connected_components():
            if len(scc) > 1:
                cycles.append([self._nodes[i].name for i in scc])
            elif self._has_self_loop(scc[0]):
                cycles.append([self._nodes[scc[0]].name])
        return cycles

    def get_nodes_in_cycles(self) -> Set[str]:
        return {name for cycle in self.detect_cycles() for name in cycle}

    def get_cycle_details(self) -> List[CycleInfo]:
        return [CycleInfo(nodes=cycle) for cycle in self.detect_cycles()]

    def _successors(self, idx: int) -> List[int]:
        return [self._edges[e][1] for e in self._outgoing[idx]]

    def _has_self_loop(self, idx: int) -> bool:
        return any(self._edges[e][1] == idx for e in self._outgoing[idx])

    def _strongly_connected_components(self) -> List[List[int]]:
        """Tarjan's algorithm, iterative so long chains don't hit the recursion limit."""
        index_counter = 0
        index: Dict[int, int] = {}
        lowlink: Dict[int, int] = {}
        on_stack: Set[int] = set()
        stack: List[int] = []
        result: List[List[int]] = []

        for root in range(len(self._nodes)):
            if root in index:
                continue

            work = [(root, iter(self._successors(root)))]
            index[root] = lowlink[root] = index_counter
            index_counter += 1
            stack.append(root)
            on_stack.add(root)

            while work:
                node, successors = work[-1]
                recursed = False
                for succ in successors:
                    if succ not in index:
                        index[succ] = lowlink[succ] = index_counter
                        index_counter += 1
                        stack.append(succ)
                        on_stack.add(succ)
                        work.append((succ, iter(self._successors(succ))))
                        recursed = True
                        break
                    if succ in on_stack:
                        lowlink[node] = min(lowlink[node], index[succ])
                if recursed:
                    continue

                work.pop()
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[node])

                if lowlink[node] == index[node]:
                    scc: List[int] = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        scc.append(member)
                        if member == node:
                            break
                    result.append(scc)

        return result

    # ------------------------------------------------------------------
    # Version requirements
    # ------------------------------------------------------------------

    def track_version_requirement(self, package_name: str, version: str, required_by: str) -> None:
        self._version_requirements[package_name].append(
            VersionRequirement(version=version, required_by=required_by)
        )

    def get_version_requirements(self, package_name: str) -> List[VersionRequirement]:
        return list(self._version_requirements.get(package_name, []))

    def detect_version_conflicts(self) -> List[VersionConflict]:
        """Packages required with at least two distinct version strings.

        Specifiers are compared literally: ``^4.17.0`` and ``~4.17.0`` conflict
        even where their ranges overlap.
        """
        conflicts: List[VersionConflict] = []
        for package_name, requirements in self._version_requirements.items():
            if len(requirements) <= 1:
                continue
            if len({r.version for r in requirements}) > 1:
                conflicts.append(VersionConflict(
                    package_name=package_name,
                    requirements=list(requirements),
                ))
        return conflicts

    def get_packages_with_conflicts(self) -> Set[str]:
        return {c.package_name for c in self.detect_version_conflicts()}

    def has_version_conflicts(self) -> bool:
        return bool(self.detect_version_conflicts())

    # ------------------------------------------------------------------
    # Bundle sizes
    # ------------------------------------------------------------------

    def apply_bundle_sizes(self, sizes: Mapping[str, Tuple[int, int]]) -> int:
        """Annotate nodes with ``(size, module_count)``; returns how many matched."""
        updated = 0
        for name, (size, module_count) in sizes.items():
            idx = self._node_indices.get(name)
            if idx is None:
                continue
            self._nodes[idx].set_bundle_size(size, module_count)
            updated += 1
        return updated

    def get_nodes_with_sizes(self) -> List[DependencyNode]:
        return [n for n in self._nodes if n.has_bundle_size()]

    def get_nodes_by_bundle_size(self) -> List[DependencyNode]:
        return sorted(self.get_nodes_with_sizes(), key=lambda n: n.bundle_size or 0, reverse=True)

    def total_bundle_size(self) -> int:
        return sum(n.bundle_size for n in self._nodes if n.bundle_size is not None)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self._nodes],
            "edges": [
                {"from": a, "to": b, "optional": e.is_optional}
                for a, b, e in self.edges()
            ],
            "cycles": [c.to_dict() for c in self.get_cycle_details()],
            "version_conflicts": [c.to_dict() for c in self.detect_version_conflicts()],
            "total_bundle_size": self.total_bundle_size(),
        }
