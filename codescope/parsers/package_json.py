"""package.json manifest parsing.

Turns a manifest into the flat ``Dependency`` list the graph is built from.
Any problem here is fatal for the run, so everything raises ``ManifestError``.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..models import Dependency, DependencyType

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """A package.json could not be read or is not usable."""


class InvalidJSONError(ManifestError):
    pass


class InvalidManifestError(ManifestError):
    pass


_SECTIONS: List[Tuple[str, DependencyType]] = [
    ("dependencies", DependencyType.PRODUCTION),
    ("devDependencies", DependencyType.DEVELOPMENT),
    ("peerDependencies", DependencyType.PEER),
    ("optionalDependencies", DependencyType.OPTIONAL),
]


@dataclass
class PackageManifest:
    """The parts of package.json codescope cares about."""
    name: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)
    peer_dependencies: Dict[str, str] = field(default_factory=dict)
    optional_dependencies: Dict[str, str] = field(default_factory=dict)
    workspaces: List[str] = field(default_factory=list)
    path: Optional[str] = None  # manifest file, when read from disk

    def has_dependencies(self) -> bool:
        return bool(
            self.dependencies
            or self.dev_dependencies
            or self.peer_dependencies
            or self.optional_dependencies
        )

    def dependency_count(self) -> int:
        return (
            len(self.dependencies)
            + len(self.dev_dependencies)
            + len(self.peer_dependencies)
            + len(self.optional_dependencies)
        )

    def section(self, dep_type: DependencyType) -> Dict[str, str]:
        return {
            DependencyType.PRODUCTION: self.dependencies,
            DependencyType.DEVELOPMENT: self.dev_dependencies,
            DependencyType.PEER: self.peer_dependencies,
            DependencyType.OPTIONAL: self.optional_dependencies,
        }[dep_type]

    @property
    def label(self) -> str:
        return self.name or "(root)"


def parse_file(path: str) -> PackageManifest:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            content = fh.read()
    except OSError as e:
        raise ManifestError(f"Failed to read {path}: {e}") from e
    logger.info("Loaded manifest %s", path)
    return parse_str(content, path=path)


def parse_str(content: str, path: Optional[str] = None) -> PackageManifest:
    where = path or "<string>"
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise InvalidJSONError(f"Failed to parse JSON in {where}: {e}") from e

    if not isinstance(data, dict):
        raise InvalidManifestError(f"{where}: top-level value must be an object")

    manifest = PackageManifest(
        name=_optional_str(data, "name", where),
        version=_optional_str(data, "version", where),
        description=_optional_str(data, "description", where),
        workspaces=_workspaces(data.get("workspaces"), where),
        path=path,
    )
    manifest.dependencies = _dep_map(data, "dependencies", where)
    manifest.dev_dependencies = _dep_map(data, "devDependencies", where)
    manifest.peer_dependencies = _dep_map(data, "peerDependencies", where)
    manifest.optional_dependencies = _dep_map(data, "optionalDependencies", where)
    return manifest


def validate(manifest: PackageManifest) -> None:
    """Reject a manifest that has neither a name nor any dependencies."""
    if manifest.name is None and not manifest.has_dependencies():
        raise InvalidManifestError(
            f"{manifest.path or 'package.json'} has no name and no dependencies"
        )


def extract_dependencies(
    manifest: PackageManifest,
    include_dev: bool = True,
    include_peer: bool = True,
    include_optional: bool = True,
) -> List[Dependency]:
    """Flatten the manifest sections, in prod/dev/peer/optional order."""
    enabled = {
        DependencyType.PRODUCTION: True,
        DependencyType.DEVELOPMENT: include_dev,
        DependencyType.PEER: include_peer,
        DependencyType.OPTIONAL: include_optional,
    }
    deps: List[Dependency] = []
    for _, dep_type in _SECTIONS:
        if not enabled[dep_type]:
            continue
        for name, version in manifest.section(dep_type).items():
            deps.append(Dependency(name=name, version=version, dep_type=dep_type))
    return deps


def group_by_type(deps: List[Dependency]) -> Dict[DependencyType, List[Dependency]]:
    groups: Dict[DependencyType, List[Dependency]] = {t: [] for _, t in _SECTIONS}
    for dep in deps:
        groups[dep.dep_type].append(dep)
    return groups


def _optional_str(data: dict, key: str, where: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidManifestError(f"{where}: '{key}' must be a string")
    return value


def _dep_map(data: dict, key: str, where: str) -> Dict[str, str]:
    section = data.get(key)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise InvalidManifestError(f"{where}: '{key}' must be an object")
    out: Dict[str, str] = {}
    for name, version in section.items():
        if not isinstance(version, str):
            raise InvalidManifestError(
                f"{where}: version of '{name}' in '{key}' must be a string"
            )
        out[name] = version
    return out


def _workspaces(value, where: str) -> List[str]:
    # npm/yarn accept either a list or {"packages": [...]}
    if value is None:
        return []
    if isinstance(value, dict):
        value = value.get("packages") or []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise InvalidManifestError(f"{where}: 'workspaces' must be a list of globs")
    return [os.path.normpath(v).replace(os.sep, "/") for v in value]
