"""Manifest-level dependency graph builder.

Reads the declared dependencies of every package.json in the project (the
root plus its workspaces) into a ``DependencyGraph``. Workspace packages that
depend on each other become edges between project nodes, which is where
cycles show up; the same external package declared by several workspaces
with different specifiers is where version conflicts show up.
"""

from __future__ import annotations

from typing import List

from ..models import DependencyType
from ..parsers.package_json import PackageManifest
from .dependency_graph import DependencyGraph


def build_manifest_graph(
    manifests: List[PackageManifest],
    include_dev: bool = False,
    include_peer: bool = True,
    include_optional: bool = True,
) -> DependencyGraph:
    """Build a dependency graph from package.json declarations.

    Args:
        manifests: Root manifest first, then workspace manifests.
        include_dev: Include devDependencies.
        include_peer: Include peerDependencies.
        include_optional: Include optionalDependencies.

    Returns:
        DependencyGraph with one node per project package and per declared
        dependency, and one edge per declaration.
    """
    graph = DependencyGraph()

    # Project packages first so their own version/type wins over how other
    # workspaces declare them.
    for manifest in manifests:
        graph.add_dependency(manifest.label, manifest.version or "", DependencyType.PRODUCTION)

    sections = [(DependencyType.PRODUCTION, False)]
    if include_dev:
        sections.append((DependencyType.DEVELOPMENT, False))
    if include_peer:
        sections.append((DependencyType.PEER, False))
    if include_optional:
        sections.append((DependencyType.OPTIONAL, True))

    for manifest in manifests:
        owner = manifest.label
        for dep_type, optional in sections:
            for dep_name, version in manifest.section(dep_type).items():
                graph.add_dependency(dep_name, version, dep_type)
                if optional:
                    graph.add_optional_edge(owner, dep_name)
                else:
                    graph.add_edge(owner, dep_name)
                graph.track_version_requirement(dep_name, version, owner)

    return graph
