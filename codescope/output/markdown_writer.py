"""Markdown report writer."""

from __future__ import annotations

import os
from datetime import datetime, timezone


def write_report_md(result, output_dir: str) -> str:
    """Write the full analysis report as Markdown."""
    path = os.path.join(output_dir, "report.md")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    s = result.summary()
    graph = result.graph
    pi = result.project_imports
    lines: list = []

    lines.append("# Dependency Report\n")
    lines.append(f"_Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}_\n")

    # Overview
    lines.append("## Overview\n")
    lines.append("| Parameter | Value |")
    lines.append("|---|---|")
    lines.append(f"| Projects | {', '.join(f'`{p}`' for p in s['projects'])} |")
    lines.append(f"| Packages (nodes) | {s['packages']} |")
    lines.append(f"| Declarations (edges) | {s['edges']} |")
    lines.append(f"| Source files analyzed | {s['files_analyzed']} |")
    lines.append(f"| Parse errors | {s['parse_errors']} |")
    lines.append(f"| External packages imported | {s['imported_packages']} |")
    if s["total_bundle_size"]:
        lines.append(f"| Total bundle size | {_format_size(s['total_bundle_size'])} |")
    lines.append("")

    # Cycles
    if result.cycles:
        lines.append(f"## ⚠️ Circular Dependencies ({len(result.cycles)})\n")
        for cycle in result.cycles:
            lines.append(f"- `{cycle.cycle_path()}`")
        lines.append("")
    else:
        lines.append("✅ No circular dependencies detected.\n")

    # Version conflicts
    if result.version_conflicts:
        lines.append(f"## ⚠️ Version Conflicts ({len(result.version_conflicts)})\n")
        lines.append("| Package | Requirements |")
        lines.append("|---|---|")
        for conflict in sorted(result.version_conflicts, key=lambda c: c.package_name):
            reqs = "<br>".join(f"`{r.version}` (by `{r.required_by}`)" for r in conflict.requirements)
            lines.append(f"| `{conflict.package_name}` | {reqs} |")
        lines.append("")
    else:
        lines.append("✅ No version conflicts detected.\n")

    # Unused
    if result.unused:
        lines.append(f"## Unused Dependencies ({len(result.unused)})\n")
        lines.append("| Package | Version | Type |")
        lines.append("|---|---|---|")
        for u in result.unused:
            lines.append(f"| `{u.name}` | `{u.version}` | {u.dep_type} |")
        lines.append("")

    # Underutilized
    if result.underutilized:
        lines.append(f"## Underutilized Packages ({len(result.underutilized)})\n")
        lines.append("| Package | Exports used | Total exports | Utilization |")
        lines.append("|---|---|---|---|")
        for u in result.underutilized:
            lines.append(
                f"| `{u.package_name}` | {u.exports_used} | {u.total_exports} | {u.utilization:.1f}% |"
            )
        lines.append("")

    # Largest packages
    sized = graph.get_nodes_by_bundle_size()[:15]
    if sized:
        lines.append("## Largest Packages\n")
        lines.append("| Package | Size | Modules |")
        lines.append("|---|---|---|")
        for node in sized:
            lines.append(f"| `{node.name}` | {_format_size(node.bundle_size or 0)} | {node.module_count or 0} |")
        lines.append("")

    # Import statistics
    if result.import_statistics:
        lines.append("## Most Imported Packages\n")
        lines.append("| Package | Files | Exports used | Usage |")
        lines.append("|---|---|---|---|")
        for st in result.import_statistics[:20]:
            lines.append(f"| `{st.package_name}` | {st.file_count} | {st.export_count} | {_usage_flags(st)} |")
        lines.append("")

    # Parse errors
    if pi.parse_errors:
        lines.append("<details><summary>Files skipped due to errors</summary>\n")
        for failure in pi.parse_errors:
            lines.append(f"- `{failure.file_path}`: {failure.message}")
        lines.append("\n</details>\n")

    with open(path, "w", encoding="utf-8") as fh:
        fh.write("\n".join(lines))

    return path


def _usage_flags(st) -> str:
    flags = []
    if st.uses_namespace:
        flags.append("entire module")
    if st.uses_default:
        flags.append("default")
    if st.has_side_effects:
        flags.append("side effects")
    return ", ".join(flags) or "named"


def _format_size(size: int) -> str:
    if size >= 1024 * 1024:
        return f"{size / (1024 * 1024):.2f} MB"
    if size >= 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size} B"
