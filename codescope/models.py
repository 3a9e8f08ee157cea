"""Data models shared by the manifest parser, graph engine and import analyzer."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


# ---------------------------------------------------------------------------
# Declared dependencies
# ---------------------------------------------------------------------------

class DependencyType(Enum):
    """Section of package.json a dependency was declared in."""
    PRODUCTION = "production"
    DEVELOPMENT = "development"
    PEER = "peer"
    OPTIONAL = "optional"

    @property
    def label(self) -> str:
        return _TYPE_LABELS[self]

    @property
    def affects_bundle_size(self) -> bool:
        return self in (DependencyType.PRODUCTION, DependencyType.OPTIONAL)

    def __str__(self) -> str:
        return self.value


_TYPE_LABELS = {
    DependencyType.PRODUCTION: "prod",
    DependencyType.DEVELOPMENT: "dev",
    DependencyType.PEER: "peer",
    DependencyType.OPTIONAL: "optional",
}


@dataclass(frozen=True)
class Dependency:
    """A normalized ``{name, version, type}`` triple from a manifest."""
    name: str
    version: str
    dep_type: DependencyType = DependencyType.PRODUCTION

    def is_production(self) -> bool:
        return self.dep_type == DependencyType.PRODUCTION

    def is_development(self) -> bool:
        return self.dep_type == DependencyType.DEVELOPMENT

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"


# ---------------------------------------------------------------------------
# Source files
# ---------------------------------------------------------------------------

class FileType(Enum):
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    TSX = "tsx"


_EXTENSION_TYPES = {
    ".js": FileType.JAVASCRIPT,
    ".mjs": FileType.JAVASCRIPT,
    ".cjs": FileType.JAVASCRIPT,
    ".jsx": FileType.JAVASCRIPT,
    ".ts": FileType.TYPESCRIPT,
    ".mts": FileType.TYPESCRIPT,
    ".cts": FileType.TYPESCRIPT,
    ".tsx": FileType.TSX,
}

SUPPORTED_EXTENSIONS = tuple(_EXTENSION_TYPES)


def detect_file_type(path: str) -> Optional[FileType]:
    """Pick the grammar for *path* from its extension, or None if unsupported."""
    _, ext = os.path.splitext(str(path))
    return _EXTENSION_TYPES.get(ext.lower())


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------

class ImportKind(Enum):
    ES6 = "es6"
    COMMONJS = "commonjs"
    DYNAMIC_IMPORT = "dynamic"


@dataclass(frozen=True)
class DefaultSpecifier:
    """``import React from 'react'``"""
    local_name: str


@dataclass(frozen=True)
class NamedSpecifier:
    """``import { a as b } from 'x'``: *imported* is the exported name."""
    imported: str
    local: str


@dataclass(frozen=True)
class NamespaceSpecifier:
    """``import * as X from 'x'``"""
    local_name: str


@dataclass(frozen=True)
class SideEffectSpecifier:
    """``import 'x'``, a discarded ``require('x')`` or ``import('x')``."""


@dataclass(frozen=True)
class EntireSpecifier:
    """The whole module object is bound, e.g. ``const _ = require('lodash')``.

    *local_name* is None when the module object is used without being bound
    to a name (passed as an argument, returned, ...).
    """
    local_name: Optional[str]


ImportSpecifier = Union[
    DefaultSpecifier,
    NamedSpecifier,
    NamespaceSpecifier,
    SideEffectSpecifier,
    EntireSpecifier,
]


def specifier_to_dict(spec: ImportSpecifier) -> dict:
    if isinstance(spec, DefaultSpecifier):
        return {"type": "default", "local": spec.local_name}
    if isinstance(spec, NamedSpecifier):
        return {"type": "named", "imported": spec.imported, "local": spec.local}
    if isinstance(spec, NamespaceSpecifier):
        return {"type": "namespace", "local": spec.local_name}
    if isinstance(spec, SideEffectSpecifier):
        return {"type": "side_effect"}
    if isinstance(spec, EntireSpecifier):
        return {"type": "entire", "local": spec.local_name}
    raise TypeError(f"unknown import specifier: {spec!r}")


@dataclass
class Import:
    """One import-like statement found in a source file."""
    source: str
    specifiers: List[ImportSpecifier] = field(default_factory=list)
    kind: ImportKind = ImportKind.ES6
    line: int = 0

    def is_local(self) -> bool:
        return is_local_source(self.source)

    @property
    def package_name(self) -> Optional[str]:
        return extract_package_name(self.source)

    def is_namespace_import(self) -> bool:
        return any(isinstance(s, NamespaceSpecifier) for s in self.specifiers)

    def is_side_effect_only(self) -> bool:
        return bool(self.specifiers) and all(
            isinstance(s, SideEffectSpecifier) for s in self.specifiers
        )

    def named_imports(self) -> List[str]:
        return [s.imported for s in self.specifiers if isinstance(s, NamedSpecifier)]

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "kind": self.kind.value,
            "line": self.line,
            "specifiers": [specifier_to_dict(s) for s in self.specifiers],
        }


def is_local_source(source: str) -> bool:
    """True for relative/absolute paths and the ``@/`` project alias."""
    return (
        not source
        or source.startswith(".")
        or source.startswith("/")
        or source.startswith("@/")
    )


def extract_package_name(source: str) -> Optional[str]:
    """Map a module specifier to the npm package that provides it.

    ``lodash/debounce`` -> ``lodash``; ``@scope/pkg/sub`` -> ``@scope/pkg``;
    local paths -> None.
    """
    if is_local_source(source):
        return None
    parts = source.split("/")
    if source.startswith("@") and len(parts) >= 2:
        return f"{parts[0]}/{parts[1]}"
    return parts[0]
