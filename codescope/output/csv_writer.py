"""CSV output writer."""

from __future__ import annotations

import csv
import os


_PACKAGE_HEADERS = [
    "name", "version", "type", "depth",
    "bundle_size", "module_count",
    "in_cycle", "has_conflict",
    "importing_files", "utilization",
]


def write_packages_csv(result, output_dir: str) -> str:
    """Write one row per package in the dependency graph."""
    path = os.path.join(output_dir, "packages.csv")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    graph = result.graph
    in_cycles = graph.get_nodes_in_cycles()
    conflicting = graph.get_packages_with_conflicts()
    package_usage = result.project_imports.package_usage

    with open(path, "w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=_PACKAGE_HEADERS)
        writer.writeheader()
        for node in graph.nodes():
            usage = package_usage.get(node.name)
            utilization = None
            if usage is not None:
                utilization = usage.utilization_percentage(result.export_counts.get(node.name))
            writer.writerow({
                "name": node.name,
                "version": node.version,
                "type": str(node.dep_type),
                "depth": node.depth,
                "bundle_size": node.bundle_size if node.bundle_size is not None else "",
                "module_count": node.module_count if node.module_count is not None else "",
                "in_cycle": node.name in in_cycles,
                "has_conflict": node.name in conflicting,
                "importing_files": len(usage.importing_files) if usage is not None else 0,
                "utilization": round(utilization, 2) if utilization is not None else "",
            })

    return path
