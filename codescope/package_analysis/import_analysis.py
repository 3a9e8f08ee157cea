"""Import usage analysis across a project.

Compares declared dependencies with what the sources actually import:
unused dependencies, underutilized packages and per-package statistics.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional

from ..models import Dependency, DependencyType
from .models import UNDERUTILIZATION_THRESHOLD, ProjectImports


@dataclass
class UnusedDependency:
    """A declared dependency that no analyzed file imports."""
    name: str
    version: str
    dep_type: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class UnderutilizedPackage:
    """A package whose imported surface is a small share of its exports."""
    package_name: str
    exports_used: int
    total_exports: int
    utilization: float

    def to_dict(self) -> dict:
        d = asdict(self)
        d["utilization"] = round(self.utilization, 2)
        return d


@dataclass
class ImportStatistics:
    """Import statistics for one package."""
    package_name: str
    file_count: int
    export_count: int
    uses_default: bool
    uses_namespace: bool
    has_side_effects: bool

    def to_dict(self) -> dict:
        return asdict(self)


def find_unused_dependencies(
    dependencies: Iterable[Dependency],
    project_imports: ProjectImports,
    include_dev: bool = False,
    include_peer: bool = False,
) -> List[UnusedDependency]:
    """Declared dependencies never imported by any analyzed file.

    Dev and peer dependencies are mostly tools and host packages that sources
    never import, so they are ignored unless asked for. ``@types/*`` packages
    only provide type declarations and are always ignored.
    """
    results: List[UnusedDependency] = []
    seen = set()
    for dep in dependencies:
        if dep.name.startswith("@types/"):
            continue
        if dep.dep_type == DependencyType.DEVELOPMENT and not include_dev:
            continue
        if dep.dep_type == DependencyType.PEER and not include_peer:
            continue
        # a name filtered out in one section can still count in another
        if dep.name in seen:
            continue
        seen.add(dep.name)
        if dep.name in project_imports.package_usage:
            continue
        results.append(UnusedDependency(
            name=dep.name,
            version=dep.version,
            dep_type=str(dep.dep_type),
        ))
    results.sort(key=lambda u: u.name)
    return results


def find_underutilized_packages(
    project_imports: ProjectImports,
    export_counts: Dict[str, int],
    threshold: float = UNDERUTILIZATION_THRESHOLD,
) -> List[UnderutilizedPackage]:
    """Packages below *threshold* percent utilization, least used first.

    Only packages with a known, nonzero export count can be judged.
    """
    results: List[UnderutilizedPackage] = []
    for name, usage in project_imports.package_usage.items():
        total = export_counts.get(name)
        if not usage.is_potentially_underutilized(total, threshold):
            continue
        utilization = usage.utilization_percentage(total)
        results.append(UnderutilizedPackage(
            package_name=name,
            exports_used=usage.export_count(),
            total_exports=total,
            utilization=utilization if utilization is not None else 0.0,
        ))
    results.sort(key=lambda u: (u.utilization, u.package_name))
    return results


def get_import_statistics(project_imports: ProjectImports) -> List[ImportStatistics]:
    """Per-package import statistics, most widely imported first."""
    results = [
        ImportStatistics(
            package_name=name,
            file_count=len(usage.importing_files),
            export_count=usage.export_count(),
            uses_default=usage.uses_default,
            uses_namespace=usage.uses_namespace,
            has_side_effects=usage.has_side_effects,
        )
        for name, usage in project_imports.package_usage.items()
    ]
    results.sort(key=lambda s: (-s.file_count, s.package_name))
    return results


def utilization_by_package(
    project_imports: ProjectImports,
    export_counts: Dict[str, int],
) -> Dict[str, Optional[float]]:
    """Utilization percentage for every imported package (None if unknown)."""
    return {
        name: usage.utilization_percentage(export_counts.get(name))
        for name, usage in project_imports.package_usage.items()
    }
