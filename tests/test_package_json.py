import json
from pathlib import Path

import pytest

from codescope.models import DependencyType
from codescope.parsers.package_json import (
    InvalidJSONError,
    InvalidManifestError,
    ManifestError,
    extract_dependencies,
    group_by_type,
    parse_file,
    parse_str,
    validate,
)

SAMPLE = {
    "name": "my-app",
    "version": "1.0.0",
    "dependencies": {"react": "^18.2.0", "lodash": "^4.17.21"},
    "devDependencies": {"typescript": "^5.0.0"},
    "peerDependencies": {"react-dom": "^18.0.0"},
    "optionalDependencies": {"fsevents": "^2.3.0"},
}


def test_parse_str_reads_all_sections():
    manifest = parse_str(json.dumps(SAMPLE))

    assert manifest.name == "my-app"
    assert manifest.version == "1.0.0"
    assert manifest.dependencies == {"react": "^18.2.0", "lodash": "^4.17.21"}
    assert manifest.dev_dependencies == {"typescript": "^5.0.0"}
    assert manifest.peer_dependencies == {"react-dom": "^18.0.0"}
    assert manifest.optional_dependencies == {"fsevents": "^2.3.0"}
    assert manifest.has_dependencies()
    assert manifest.dependency_count() == 5
    assert manifest.label == "my-app"


def test_extract_dependencies_order_and_filters():
    manifest = parse_str(json.dumps(SAMPLE))

    deps = extract_dependencies(manifest)
    assert [(d.name, d.dep_type) for d in deps] == [
        ("react", DependencyType.PRODUCTION),
        ("lodash", DependencyType.PRODUCTION),
        ("typescript", DependencyType.DEVELOPMENT),
        ("react-dom", DependencyType.PEER),
        ("fsevents", DependencyType.OPTIONAL),
    ]

    prod_only = extract_dependencies(
        manifest, include_dev=False, include_peer=False, include_optional=False
    )
    assert [d.name for d in prod_only] == ["react", "lodash"]


def test_group_by_type():
    deps = extract_dependencies(parse_str(json.dumps(SAMPLE)))
    groups = group_by_type(deps)
    assert [d.name for d in groups[DependencyType.PRODUCTION]] == ["react", "lodash"]
    assert len(groups[DependencyType.DEVELOPMENT]) == 1
    assert len(groups[DependencyType.PEER]) == 1
    assert len(groups[DependencyType.OPTIONAL]) == 1


def test_missing_sections_are_empty():
    manifest = parse_str('{"name": "bare"}')
    assert not manifest.has_dependencies()
    assert extract_dependencies(manifest) == []
    validate(manifest)


def test_invalid_json():
    with pytest.raises(InvalidJSONError):
        parse_str("{not json")


def test_top_level_must_be_object():
    with pytest.raises(InvalidManifestError):
        parse_str("[]")


def test_non_string_version_rejected():
    with pytest.raises(InvalidManifestError):
        parse_str('{"dependencies": {"react": 18}}')


def test_validate_rejects_empty_manifest():
    with pytest.raises(InvalidManifestError):
        validate(parse_str("{}"))
    validate(parse_str('{"dependencies": {"a": "1"}}'))


def test_workspaces_forms():
    assert parse_str('{"name": "r", "workspaces": ["packages/*"]}').workspaces == ["packages/*"]
    nested = parse_str('{"name": "r", "workspaces": {"packages": ["apps/*", "libs/*"]}}')
    assert nested.workspaces == ["apps/*", "libs/*"]
    with pytest.raises(InvalidManifestError):
        parse_str('{"name": "r", "workspaces": "packages/*"}')


def test_parse_file(tmp_path: Path):
    path = tmp_path / "package.json"
    path.write_text(json.dumps(SAMPLE), encoding="utf-8")
    manifest = parse_file(str(path))
    assert manifest.path == str(path)
    assert manifest.name == "my-app"


def test_parse_file_missing(tmp_path: Path):
    with pytest.raises(ManifestError):
        parse_file(str(tmp_path / "package.json"))
