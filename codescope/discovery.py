"""Project discovery: package.json manifests and JS/TS source files."""

from __future__ import annotations

import fnmatch
import glob
import logging
import os
from typing import List

from .config import CodescopeConfig
from .parsers.package_json import ManifestError, PackageManifest, parse_file, validate

logger = logging.getLogger(__name__)


def discover_manifests(config: CodescopeConfig) -> List[PackageManifest]:
    """Load the root package.json and, if enabled, its workspace manifests.

    The root manifest is required; a missing or malformed one raises
    ``ManifestError``. Workspace manifests are required too once a workspace
    glob matches a directory that contains one.
    """
    root = config.root
    root_path = os.path.join(root, "package.json")
    if not os.path.isfile(root_path):
        raise ManifestError(f"package.json not found at {root_path}")

    root_manifest = parse_file(root_path)
    validate(root_manifest)
    manifests = [root_manifest]

    if not config.discovery.workspaces:
        return manifests

    seen = {os.path.abspath(root_path)}
    for pattern in root_manifest.workspaces:
        matches = sorted(glob.glob(os.path.join(root, pattern)))
        if not matches:
            logger.info("workspace pattern %r matched nothing", pattern)
        for ws_dir in matches:
            rel = os.path.relpath(ws_dir, root)
            if _is_excluded_dir(rel, config.discovery.exclude_dirs):
                continue
            manifest_path = os.path.abspath(os.path.join(ws_dir, "package.json"))
            if manifest_path in seen or not os.path.isfile(manifest_path):
                continue
            seen.add(manifest_path)
            manifest = parse_file(manifest_path)
            validate(manifest)
            manifests.append(manifest)

    return manifests


def list_source_files(root: str, config: CodescopeConfig) -> List[str]:
    """List all JS/TS source files under *root*, applying filters.

    Returns sorted absolute paths.
    """
    extensions = tuple(e.lower() for e in config.discovery.extensions)
    files: List[str] = []

    for dirpath, dirs, filenames in os.walk(root):
        # Prune dependency/build directories
        dirs[:] = sorted(
            d for d in dirs
            if d not in config.discovery.exclude_dirs
        )

        for f in filenames:
            if not f.lower().endswith(extensions):
                continue
            full_path = os.path.join(dirpath, f)
            rel_to_root = os.path.relpath(full_path, root)
            if _is_file_excluded(rel_to_root, config.discovery.exclude_files):
                continue
            files.append(os.path.abspath(full_path))

    return sorted(files)


def _is_excluded_dir(rel_path: str, names: list) -> bool:
    parts = rel_path.replace(os.sep, "/").split("/")
    return any(part in names for part in parts)


def _is_file_excluded(rel_path: str, patterns: list) -> bool:
    """Check if a file matches any exclusion pattern."""
    normalized = rel_path.replace(os.sep, "/")
    for pattern in patterns:
        if fnmatch.fnmatch(normalized, pattern):
            return True
        # Also match just the filename
        if fnmatch.fnmatch(os.path.basename(normalized), pattern.rsplit("/", 1)[-1]):
            return True
    return False
