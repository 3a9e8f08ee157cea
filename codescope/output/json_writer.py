"""JSON output writer."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Dict

from ..graphs.dependency_graph import DependencyGraph
from ..package_analysis.models import ProjectImports


def write_dependency_graph(graph: DependencyGraph, output_dir: str) -> str:
    """Write the dependency graph with its cycles and version conflicts."""
    path = os.path.join(output_dir, "dependency_graph.json")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    data = {
        "generated_at": _now_iso(),
        "node_count": graph.node_count(),
        "edge_count": graph.edge_count(),
        **graph.to_dict(),
        "nodes_in_cycles": sorted(graph.get_nodes_in_cycles()),
        "packages_with_conflicts": sorted(graph.get_packages_with_conflicts()),
        "largest_packages": [n.to_dict() for n in graph.get_nodes_by_bundle_size()],
    }

    _write_json(path, data)
    return path


def write_import_usage(
    project_imports: ProjectImports,
    export_counts: Dict[str, int],
    output_dir: str,
) -> str:
    """Write per-package usage and per-file imports."""
    path = os.path.join(output_dir, "import_usage.json")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    data = {
        "generated_at": _now_iso(),
        **project_imports.to_dict(export_counts),
    }

    _write_json(path, data)
    return path


def write_summary(result, output_dir: str) -> str:
    """Write the run summary plus the unused/underutilized findings."""
    path = os.path.join(output_dir, "summary.json")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    data = {
        "generated_at": _now_iso(),
        "summary": result.summary(),
        "cycles": [c.to_dict() for c in result.cycles],
        "version_conflicts": [c.to_dict() for c in result.version_conflicts],
        "unused_dependencies": [u.to_dict() for u in result.unused],
        "underutilized_packages": [u.to_dict() for u in result.underutilized],
        "import_statistics": [s.to_dict() for s in result.import_statistics],
    }

    _write_json(path, data)
    return path


def _write_json(path: str, data: dict):
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, ensure_ascii=False, default=str)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
