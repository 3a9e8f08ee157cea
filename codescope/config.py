"""Configuration loading for codescope."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

import yaml

from .models import SUPPORTED_EXTENSIONS


CONFIG_FILENAMES = ("codescope.yaml", ".codescope.yaml")


# ---------------------------------------------------------------------------
# Discovery config
# ---------------------------------------------------------------------------

@dataclass
class DiscoveryConfig:
    workspaces: bool = True  # follow package.json "workspaces"
    extensions: list = field(default_factory=lambda: list(SUPPORTED_EXTENSIONS))
    exclude_dirs: list = field(default_factory=lambda: [
        "node_modules",
        "dist",
        "build",
        "coverage",
        ".git",
        ".next",
        "out",
    ])
    exclude_files: list = field(default_factory=lambda: [
        "**/*.d.ts",
        "**/*.min.js",
    ])


# ---------------------------------------------------------------------------
# Graph config
# ---------------------------------------------------------------------------

@dataclass
class GraphConfig:
    include_dev: bool = False
    include_peer: bool = True
    include_optional: bool = True


# ---------------------------------------------------------------------------
# Import analysis config
# ---------------------------------------------------------------------------

@dataclass
class AnalysisConfig:
    underutilization_threshold: float = 20.0
    strict_parse: bool = False
    export_counts_file: Optional[str] = None  # {package: total export count}
    bundle_sizes_file: Optional[str] = None   # {package: {size, modules}}
    include_dev_in_unused: bool = False
    include_peer_in_unused: bool = False


# ---------------------------------------------------------------------------
# Output config
# ---------------------------------------------------------------------------

@dataclass
class OutputConfig:
    directory: str = "codescope_output"
    formats: list = field(default_factory=lambda: ["json", "markdown", "dot", "csv"])


# ---------------------------------------------------------------------------
# Top-level Config
# ---------------------------------------------------------------------------

@dataclass
class CodescopeConfig:
    version: str = "1.0"
    root: str = "."
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    graphs: GraphConfig = field(default_factory=GraphConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def resolve_path(self, path: str) -> str:
        """Resolve *path* against the project root unless it is absolute."""
        if os.path.isabs(path):
            return path
        return os.path.normpath(os.path.join(self.root, path))


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """The configuration file exists but cannot be used."""


def _apply_dict(obj, data: dict):
    """Apply dictionary values to a dataclass instance, recursively."""
    if not isinstance(data, dict):
        return
    for key, value in data.items():
        if hasattr(obj, key):
            current = getattr(obj, key)
            if hasattr(current, '__dataclass_fields__') and isinstance(value, dict):
                _apply_dict(current, value)
            else:
                setattr(obj, key, value)


def load_config(config_path: Optional[str] = None, repo_root: Optional[str] = None) -> CodescopeConfig:
    """Load configuration from YAML.

    When *config_path* is None, ``codescope.yaml`` and then
    ``.codescope.yaml`` in *repo_root* are tried; without either the
    defaults are used. *repo_root* defaults to cwd.
    """
    if repo_root is None:
        repo_root = os.getcwd()

    config = CodescopeConfig()

    if config_path is None:
        for candidate in CONFIG_FILENAMES:
            candidate = os.path.join(repo_root, candidate)
            if os.path.isfile(candidate):
                config_path = candidate
                break
    elif not os.path.isfile(config_path):
        raise ConfigError(f"config file not found: {config_path}")

    if config_path:
        try:
            with open(config_path, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path}: top-level value must be a mapping")

        if "version" in data:
            config.version = str(data["version"])
        if "root" in data:
            config.root = data["root"]
        for section in ("discovery", "graphs", "analysis", "output"):
            if section in data:
                _apply_dict(getattr(config, section), data[section])

    # Resolve root to absolute
    if not os.path.isabs(config.root):
        if config_path:
            config_dir = os.path.dirname(os.path.abspath(config_path))
            config.root = os.path.normpath(os.path.join(config_dir, config.root))
        else:
            config.root = os.path.abspath(os.path.join(repo_root, config.root))

    return config
