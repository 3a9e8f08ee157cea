"""Collector: orchestrates manifest loading, graph analysis, import scanning and output."""

from __future__ import annotations

import logging
import os
import sys
import time
from typing import Dict, List, Optional, Tuple

import yaml

from .config import CodescopeConfig, ConfigError
from .discovery import discover_manifests, list_source_files
from .graphs.dependency_graph import DependencyGraph
from .graphs.manifest_graph import build_manifest_graph
from .graphs.models import CycleInfo, VersionConflict
from .models import Dependency
from .output import csv_writer, dot_writer, json_writer, markdown_writer
from .package_analysis.import_analysis import (
    ImportStatistics,
    UnderutilizedPackage,
    UnusedDependency,
    find_underutilized_packages,
    find_unused_dependencies,
    get_import_statistics,
)
from .package_analysis.models import ProjectImports
from .parsers.js_parser import AnalysisError, ImportAnalyzer, UnsupportedFileType
from .parsers.package_json import PackageManifest, extract_dependencies

logger = logging.getLogger(__name__)


class AnalysisResult:
    """Container for everything one run produces."""

    def __init__(self):
        self.root: str = ""
        self.manifests: List[PackageManifest] = []
        self.dependencies: List[Dependency] = []
        self.graph: DependencyGraph = DependencyGraph()
        self.cycles: List[CycleInfo] = []
        self.version_conflicts: List[VersionConflict] = []
        self.project_imports: ProjectImports = ProjectImports()
        self.export_counts: Dict[str, int] = {}
        self.unused: List[UnusedDependency] = []
        self.underutilized: List[UnderutilizedPackage] = []
        self.import_statistics: List[ImportStatistics] = []
        self.duration_seconds: float = 0.0

    @property
    def project_names(self) -> List[str]:
        return [m.label for m in self.manifests]

    def has_issues(self) -> bool:
        return bool(self.cycles or self.version_conflicts or self.unused or self.underutilized)

    def summary(self) -> dict:
        graph = self.graph
        return {
            "root": self.root,
            "projects": self.project_names,
            "packages": graph.node_count(),
            "edges": graph.edge_count(),
            "cycles": len(self.cycles),
            "version_conflicts": len(self.version_conflicts),
            "files_analyzed": self.project_imports.files_analyzed,
            "parse_errors": len(self.project_imports.parse_errors),
            "skipped_files": len(self.project_imports.skipped_files),
            "imported_packages": len(self.project_imports.package_usage),
            "unused_dependencies": len(self.unused),
            "underutilized_packages": len(self.underutilized),
            "total_bundle_size": graph.total_bundle_size(),
            "duration_seconds": round(self.duration_seconds, 3),
        }


def collect_analysis(config: CodescopeConfig, verbose: bool = True) -> AnalysisResult:
    """Main entry point: load manifests, build the graph, scan sources."""

    start_time = time.time()
    result = AnalysisResult()
    root = config.root
    result.root = root

    if verbose:
        print(f"[codescope] Project root: {root}")

    # 1. Manifests and graph
    result.manifests = discover_manifests(config)
    if verbose:
        print(f"[codescope] Manifests found: {len(result.manifests)}")
        for m in result.manifests:
            print(f"  - {m.label} ({m.dependency_count()} dependencies)")

    graph_cfg = config.graphs
    result.graph = build_manifest_graph(
        result.manifests,
        include_dev=graph_cfg.include_dev,
        include_peer=graph_cfg.include_peer,
        include_optional=graph_cfg.include_optional,
    )
    for manifest in result.manifests:
        result.dependencies.extend(extract_dependencies(manifest))

    if config.analysis.bundle_sizes_file:
        sizes = load_bundle_sizes(config.resolve_path(config.analysis.bundle_sizes_file))
        updated = result.graph.apply_bundle_sizes(sizes)
        if verbose:
            print(f"[codescope] Bundle sizes applied to {updated} packages")

    # 2. Structural checks
    result.cycles = result.graph.get_cycle_details()
    result.version_conflicts = result.graph.detect_version_conflicts()
    if verbose:
        print(f"[codescope] Graph: {result.graph.node_count()} packages, "
              f"{result.graph.edge_count()} edges, {len(result.cycles)} cycles, "
              f"{len(result.version_conflicts)} version conflicts")

    # 3. Import usage
    if verbose:
        print("\n[codescope] Scanning source files...")
    result.project_imports = scan_sources(root, config, verbose=verbose)

    if config.analysis.export_counts_file:
        result.export_counts = load_export_counts(
            config.resolve_path(config.analysis.export_counts_file)
        )

    result.unused = find_unused_dependencies(
        result.dependencies,
        result.project_imports,
        include_dev=config.analysis.include_dev_in_unused,
        include_peer=config.analysis.include_peer_in_unused,
    )
    result.underutilized = find_underutilized_packages(
        result.project_imports,
        result.export_counts,
        threshold=config.analysis.underutilization_threshold,
    )
    result.import_statistics = get_import_statistics(result.project_imports)

    result.duration_seconds = time.time() - start_time
    return result


def scan_sources(
    root: str,
    config: CodescopeConfig,
    analyzer: Optional[ImportAnalyzer] = None,
    verbose: bool = True,
) -> ProjectImports:
    """Extract imports from every source file under *root*.

    A file that fails to read or parse is recorded and skipped; the scan
    always continues. A missing grammar is not a per-file problem and
    propagates.
    """
    if analyzer is None:
        analyzer = ImportAnalyzer(strict=config.analysis.strict_parse)

    project_imports = ProjectImports()
    files = list_source_files(root, config)

    for fpath in files:
        rel_path = os.path.relpath(fpath, root).replace(os.sep, "/")
        try:
            imports = analyzer.analyze_file(fpath)
        except UnsupportedFileType:
            logger.debug("Skipping unsupported file %s", rel_path)
            project_imports.add_skipped_file(rel_path)
            continue
        except AnalysisError as e:
            logger.warning("Skipping %s: %s", rel_path, e.message)
            project_imports.add_parse_error(rel_path, e.message)
            if verbose:
                print(f"  [!] Parse error {rel_path}: {e.message}", file=sys.stderr)
            continue
        project_imports.add_file_imports(rel_path, imports)

    if verbose:
        print(f"  Files analyzed: {project_imports.files_analyzed}")
        print(f"  External packages imported: {len(project_imports.package_usage)}")
        if project_imports.parse_errors:
            print(f"  Parse errors: {len(project_imports.parse_errors)}")

    return project_imports


# ---------------------------------------------------------------------------
# External enrichment inputs
# ---------------------------------------------------------------------------

def _load_mapping(path: str) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML/JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping of package name to value")
    return data


def load_export_counts(path: str) -> Dict[str, int]:
    """Read ``{package: total_export_count}`` from a YAML or JSON file."""
    counts: Dict[str, int] = {}
    for name, value in _load_mapping(path).items():
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigError(f"{path}: export count for {name!r} must be a non-negative integer")
        counts[str(name)] = value
    return counts


def load_bundle_sizes(path: str) -> Dict[str, Tuple[int, int]]:
    """Read ``{package: {size: bytes, modules: count}}`` from a YAML or JSON file.

    A bare integer is accepted as a size with a module count of 0.
    """
    sizes: Dict[str, Tuple[int, int]] = {}
    for name, value in _load_mapping(path).items():
        if isinstance(value, dict):
            size, modules = value.get("size"), value.get("modules", 0)
        else:
            size, modules = value, 0
        if not isinstance(size, int) or not isinstance(modules, int):
            raise ConfigError(f"{path}: bundle size for {name!r} must be integers")
        sizes[str(name)] = (size, modules)
    return sizes


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

def write_output(
    result: AnalysisResult,
    config: CodescopeConfig,
    verbose: bool = True,
) -> List[str]:
    """Write all output files based on config."""

    output_dir = config.resolve_path(config.output.directory)
    formats = config.output.formats

    written_files: List[str] = []

    if verbose:
        print(f"\n[codescope] Writing results to {output_dir}...")

    if "json" in formats:
        written_files.append(json_writer.write_dependency_graph(result.graph, output_dir))
        written_files.append(
            json_writer.write_import_usage(result.project_imports, result.export_counts, output_dir)
        )
        written_files.append(json_writer.write_summary(result, output_dir))

    if "markdown" in formats:
        written_files.append(markdown_writer.write_report_md(result, output_dir))

    if "dot" in formats:
        written_files.append(dot_writer.write_dependency_graph_dot(result.graph, output_dir))

    if "csv" in formats:
        written_files.append(csv_writer.write_packages_csv(result, output_dir))

    if verbose:
        for p in written_files:
            print(f"  {os.path.relpath(p, output_dir)}")

    return written_files
