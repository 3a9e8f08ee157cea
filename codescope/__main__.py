"""CLI entry point for codescope.

Usage:
    codescope [options] [PROJECT_ROOT]
    python -m codescope [options] [PROJECT_ROOT]

Options:
    PROJECT_ROOT          Path to the JS/TS project root (default: cwd)
    --config PATH         Path to codescope.yaml config file
    --format LIST         Comma-separated output formats: json,markdown,dot,csv
    --output DIR          Override output directory
    --include-dev         Include devDependencies in the graph
    --include-peer-in-unused
                          Report unimported peerDependencies as unused
    --export-counts PATH  YAML/JSON map of package -> total export count
    --bundle-sizes PATH   YAML/JSON map of package -> {size, modules}
    --strict              Treat files with syntax errors as parse failures
    --fail-on-cycles      Exit with status 2 if circular dependencies exist
    --fail-on-conflicts   Exit with status 2 if version conflicts exist
    --quiet / -q          Suppress progress output
    --debug               Debug logging
    --help / -h           Show this help
"""

from __future__ import annotations

import argparse
import logging
import os
import sys


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="codescope",
        description="Analyze declared dependencies and import usage of a JS/TS project",
    )
    parser.add_argument(
        "project_root",
        nargs="?",
        default=None,
        help="Path to the project root to analyze (default: current directory)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to codescope.yaml configuration file",
    )
    parser.add_argument(
        "--format",
        type=str,
        default=None,
        help="Comma-separated output formats (json,markdown,dot,csv)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output directory for results",
    )
    parser.add_argument(
        "--include-dev",
        action="store_true",
        default=False,
        help="Include devDependencies in the dependency graph",
    )
    parser.add_argument(
        "--include-peer-in-unused",
        action="store_true",
        default=False,
        help="Report peerDependencies that no source file imports as unused",
    )
    parser.add_argument(
        "--export-counts",
        type=str,
        default=None,
        help="YAML/JSON file mapping package name to total export count",
    )
    parser.add_argument(
        "--bundle-sizes",
        type=str,
        default=None,
        help="YAML/JSON file mapping package name to {size, modules}",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=False,
        help="Skip files containing syntax errors instead of using the recovered tree",
    )
    parser.add_argument(
        "--fail-on-cycles",
        action="store_true",
        default=False,
        help="Exit with status 2 when circular dependencies are found",
    )
    parser.add_argument(
        "--fail-on-conflicts",
        action="store_true",
        default=False,
        help="Exit with status 2 when version conflicts are found",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress output",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Determine project root
    if args.project_root:
        repo_root = os.path.abspath(args.project_root)
    else:
        repo_root = os.getcwd()

    if not os.path.isdir(repo_root):
        print(f"Error: project root not found: {repo_root}", file=sys.stderr)
        return 1

    from .config import ConfigError, load_config
    from .parsers.package_json import ManifestError

    try:
        config = load_config(config_path=args.config, repo_root=repo_root)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Apply CLI overrides
    if args.format:
        config.output.formats = [f.strip() for f in args.format.split(",") if f.strip()]
    if args.output:
        config.output.directory = os.path.abspath(args.output)
    if args.include_dev:
        config.graphs.include_dev = True
    if args.include_peer_in_unused:
        config.analysis.include_peer_in_unused = True
    if args.export_counts:
        config.analysis.export_counts_file = os.path.abspath(args.export_counts)
    if args.bundle_sizes:
        config.analysis.bundle_sizes_file = os.path.abspath(args.bundle_sizes)
    if args.strict:
        config.analysis.strict_parse = True

    verbose = not args.quiet

    if verbose:
        print("=" * 60)
        print("  codescope")
        print("=" * 60)
        print(f"  Formats: {', '.join(config.output.formats)}")
        print(f"  Dev dependencies in graph: {'✓' if config.graphs.include_dev else '✗'}")
        print(f"  Export counts: {config.analysis.export_counts_file or '✗'}")
        print("=" * 60)
        print()

    from .collector import collect_analysis, write_output

    try:
        result = collect_analysis(config, verbose=verbose)
        written = write_output(result, config, verbose=verbose)
    except (ManifestError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if verbose:
        print(f"\n{'=' * 60}")
        print(f"  Done! Wrote {len(written)} files.")
        print(f"  Cycles: {len(result.cycles)}  Conflicts: {len(result.version_conflicts)}  "
              f"Unused: {len(result.unused)}  Underutilized: {len(result.underutilized)}")
        print(f"  Time: {result.duration_seconds:.1f}s")
        print(f"{'=' * 60}")

    if args.fail_on_cycles and result.cycles:
        return 2
    if args.fail_on_conflicts and result.version_conflicts:
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
