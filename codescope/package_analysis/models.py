"""Data models for project-wide import usage."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from ..models import (
    DefaultSpecifier,
    EntireSpecifier,
    Import,
    NamedSpecifier,
    NamespaceSpecifier,
    SideEffectSpecifier,
)

# Below this utilization (in percent) a package is flagged as underutilized
UNDERUTILIZATION_THRESHOLD = 20.0


@dataclass
class PackageUsage:
    """How one external package is used across every analyzed file."""
    package_name: str = ""
    named_imports: Set[str] = field(default_factory=set)
    uses_default: bool = False
    uses_namespace: bool = False  # namespace import or whole-module require
    has_side_effects: bool = False
    importing_files: Set[str] = field(default_factory=set)

    def export_count(self) -> int:
        """Distinct exports referenced: named imports plus the default export."""
        return len(self.named_imports) + (1 if self.uses_default else 0)

    def utilization_percentage(self, total_exports: Optional[int]) -> Optional[float]:
        """Share of the package's exports in use, or None if it can't be known."""
        if self.uses_namespace:
            return 100.0
        if not total_exports:
            return None
        return min(100.0, self.export_count() / total_exports * 100.0)

    def is_potentially_underutilized(
        self,
        total_exports: Optional[int],
        threshold: float = UNDERUTILIZATION_THRESHOLD,
    ) -> bool:
        if self.uses_namespace or not total_exports:
            return False
        utilization = self.utilization_percentage(total_exports)
        return utilization is not None and utilization < threshold

    def is_side_effect_only(self) -> bool:
        return (
            self.has_side_effects
            and not self.uses_namespace
            and self.export_count() == 0
        )

    def fold(self, imp: Import, file_path: str) -> None:
        self.importing_files.add(file_path)
        for spec in imp.specifiers:
            if isinstance(spec, DefaultSpecifier):
                self.uses_default = True
            elif isinstance(spec, NamedSpecifier):
                self.named_imports.add(spec.imported)
            elif isinstance(spec, (NamespaceSpecifier, EntireSpecifier)):
                self.uses_namespace = True
            elif isinstance(spec, SideEffectSpecifier):
                self.has_side_effects = True
            else:
                raise TypeError(f"unknown import specifier: {spec!r}")

    def to_dict(self, total_exports: Optional[int] = None) -> dict:
        d = {
            "package_name": self.package_name,
            "named_imports": sorted(self.named_imports),
            "uses_default": self.uses_default,
            "uses_namespace": self.uses_namespace,
            "has_side_effects": self.has_side_effects,
            "importing_files": sorted(self.importing_files),
            "export_count": self.export_count(),
        }
        if total_exports is not None:
            d["total_exports"] = total_exports
            utilization = self.utilization_percentage(total_exports)
            d["utilization"] = round(utilization, 2) if utilization is not None else None
        return d


@dataclass
class ParseFailure:
    """A source file that was skipped because it could not be parsed or read."""
    file_path: str
    message: str

    def to_dict(self) -> dict:
        return {"file_path": self.file_path, "message": self.message}


@dataclass
class ProjectImports:
    """Imports of a whole project, folded one file at a time."""
    imports_by_file: Dict[str, List[Import]] = field(default_factory=dict)
    package_usage: Dict[str, PackageUsage] = field(default_factory=dict)
    parse_errors: List[ParseFailure] = field(default_factory=list)
    skipped_files: List[str] = field(default_factory=list)

    def add_file_imports(self, file_path: str, imports: Iterable[Import]) -> None:
        """Record a file's imports and fold the external ones into package usage."""
        imports = list(imports)
        self.imports_by_file[file_path] = imports
        for imp in imports:
            name = imp.package_name
            if name is None:
                continue
            usage = self.package_usage.get(name)
            if usage is None:
                usage = self.package_usage[name] = PackageUsage(package_name=name)
            usage.fold(imp, file_path)

    def add_parse_error(self, file_path: str, message: str) -> None:
        self.parse_errors.append(ParseFailure(file_path=file_path, message=message))

    def add_skipped_file(self, file_path: str) -> None:
        self.skipped_files.append(file_path)

    @property
    def files_analyzed(self) -> int:
        return len(self.imports_by_file)

    def get_package(self, name: str) -> Optional[PackageUsage]:
        return self.package_usage.get(name)

    def imported_packages(self) -> List[str]:
        return sorted(self.package_usage)

    def local_imports(self) -> Dict[str, List[Import]]:
        """Per-file imports of project-local modules."""
        out: Dict[str, List[Import]] = {}
        for path, imports in self.imports_by_file.items():
            local = [imp for imp in imports if imp.is_local()]
            if local:
                out[path] = local
        return out

    def to_dict(self, export_counts: Optional[Dict[str, int]] = None) -> dict:
        export_counts = export_counts or {}
        return {
            "files_analyzed": self.files_analyzed,
            "packages": {
                name: usage.to_dict(export_counts.get(name))
                for name, usage in sorted(self.package_usage.items())
            },
            "imports_by_file": {
                path: [imp.to_dict() for imp in imports]
                for path, imports in sorted(self.imports_by_file.items())
            },
            "parse_errors": [p.to_dict() for p in self.parse_errors],
            "skipped_files": list(self.skipped_files),
        }
