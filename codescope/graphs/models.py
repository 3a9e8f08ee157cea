"""Data models for dependency graph analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..models import DependencyType


@dataclass
class DependencyNode:
    """A package in the dependency graph."""
    name: str
    version: str
    dep_type: DependencyType = DependencyType.PRODUCTION
    depth: int = 0  # 0 = direct dependency
    bundle_size: Optional[int] = None
    module_count: Optional[int] = None

    def set_bundle_size(self, size: int, module_count: int) -> None:
        self.bundle_size = size
        self.module_count = module_count

    def has_bundle_size(self) -> bool:
        return self.bundle_size is not None

    def to_dict(self) -> dict:
        d = {
            "name": self.name,
            "version": self.version,
            "type": str(self.dep_type),
            "depth": self.depth,
            "bundle_size": self.bundle_size,
            "module_count": self.module_count,
        }
        return {k: v for k, v in d.items() if v is not None}


@dataclass
class DependencyEdge:
    """Metadata carried by a dependent -> dependency edge."""
    is_optional: bool = False

    @classmethod
    def optional(cls) -> "DependencyEdge":
        return cls(is_optional=True)


@dataclass
class VersionRequirement:
    """A version specifier some package declared for a dependency."""
    version: str
    required_by: str

    def to_dict(self) -> dict:
        return {"version": self.version, "required_by": self.required_by}


@dataclass
class VersionConflict:
    """A package required with two or more different version strings."""
    package_name: str
    requirements: List[VersionRequirement] = field(default_factory=list)

    def description(self) -> str:
        reqs = ", ".join(f"{r.version} (by {r.required_by})" for r in self.requirements)
        return f"{self.package_name} requires: {reqs}"

    def versions(self) -> List[str]:
        seen: List[str] = []
        for r in self.requirements:
            if r.version not in seen:
                seen.append(r.version)
        return seen

    def __len__(self) -> int:
        return len(self.requirements)

    def to_dict(self) -> dict:
        return {
            "package_name": self.package_name,
            "requirements": [r.to_dict() for r in self.requirements],
        }


@dataclass
class CycleInfo:
    """Members of one strongly connected component.

    Member order comes from the SCC traversal, so ``cycle_path`` is a
    readable rendering of the component rather than a verified edge walk.
    """
    nodes: List[str] = field(default_factory=list)

    def cycle_path(self) -> str:
        if not self.nodes:
            return ""
        return " -> ".join(self.nodes + [self.nodes[0]])

    def __len__(self) -> int:
        return len(self.nodes)

    def to_dict(self) -> dict:
        return {"nodes": list(self.nodes), "path": self.cycle_path()}
