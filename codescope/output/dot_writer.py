"""DOT graph output writer.

Generates a Graphviz DOT file for the manifest dependency graph. Packages in
a cycle are drawn red, packages with conflicting version requirements orange.
"""

from __future__ import annotations

import os

from ..graphs.dependency_graph import DependencyGraph
from ..models import DependencyType


def write_dependency_graph_dot(graph: DependencyGraph, output_dir: str) -> str:
    """Write the dependency graph as a DOT file."""
    path = os.path.join(output_dir, "dependency_graph.dot")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    in_cycles = graph.get_nodes_in_cycles()
    conflicting = graph.get_packages_with_conflicts()

    with open(path, "w", encoding="utf-8") as f:
        f.write("digraph dependency_graph {\n")
        f.write("  rankdir=LR;\n")
        f.write("  node [shape=box, style=filled, fillcolor=white];\n")
        f.write("  edge [color=gray40];\n")
        f.write("\n")

        for node in graph.nodes():
            attrs = []
            if node.version:
                attrs.append(_escape(node.version))
            if node.dep_type != DependencyType.PRODUCTION:
                attrs.append(node.dep_type.label)
            attr_str = f"\\n{', '.join(attrs)}" if attrs else ""

            if node.name in in_cycles:
                fill = "salmon"
            elif node.name in conflicting:
                fill = "orange"
            else:
                fill = "white"
            f.write(
                f'  "{_escape(node.name)}" [label="{_escape(node.name)}{attr_str}", '
                f'fillcolor={fill}];\n'
            )
        f.write("\n")

        for from_name, to_name, edge in graph.edges():
            style = " [style=dashed]" if edge.is_optional else ""
            f.write(f'  "{_escape(from_name)}" -> "{_escape(to_name)}"{style};\n')

        f.write("}\n")

    return path


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')
