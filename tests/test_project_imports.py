import pytest

from codescope.models import (
    DefaultSpecifier,
    EntireSpecifier,
    Import,
    ImportKind,
    NamedSpecifier,
    NamespaceSpecifier,
    SideEffectSpecifier,
    extract_package_name,
    is_local_source,
)
from codescope.package_analysis.models import PackageUsage, ProjectImports


def _named(*names):
    return [NamedSpecifier(imported=n, local=n) for n in names]


@pytest.mark.parametrize(
    "source, expected",
    [
        ("lodash", "lodash"),
        ("lodash/debounce", "lodash"),
        ("@babel/core", "@babel/core"),
        ("@babel/core/lib/parse", "@babel/core"),
        ("./utils", None),
        ("../lib/x", None),
        ("/abs/path", None),
        ("@/components/Button", None),
        ("", None),
    ],
)
def test_extract_package_name(source, expected):
    assert extract_package_name(source) == expected


def test_is_local_source():
    assert is_local_source("./a")
    assert is_local_source("@/a")
    assert not is_local_source("@scope/a")
    assert not is_local_source("react")


def test_utilization_from_named_imports():
    usage = PackageUsage(package_name="lodash")
    usage.fold(Import("lodash", _named("map", "filter")), "a.js")

    assert usage.export_count() == 2
    assert usage.utilization_percentage(10) == pytest.approx(20.0)
    assert not usage.is_potentially_underutilized(10)

    usage.fold(Import("lodash", [NamespaceSpecifier("_")]), "b.js")
    assert usage.utilization_percentage(10) == 100.0
    assert usage.utilization_percentage(None) == 100.0


def test_utilization_unknown_without_export_count():
    usage = PackageUsage(package_name="x")
    usage.fold(Import("x", _named("a")), "a.js")
    assert usage.utilization_percentage(None) is None
    assert usage.utilization_percentage(0) is None
    assert not usage.is_potentially_underutilized(None)


def test_utilization_is_capped():
    usage = PackageUsage(package_name="x")
    usage.fold(Import("x", [DefaultSpecifier("x")] + _named("a", "b")), "a.js")
    assert usage.export_count() == 3
    assert usage.utilization_percentage(2) == 100.0


def test_underutilized_below_threshold():
    usage = PackageUsage(package_name="lodash")
    usage.fold(Import("lodash", _named("debounce")), "a.js")
    assert usage.utilization_percentage(300) == pytest.approx(100 / 300)
    assert usage.is_potentially_underutilized(300)
    assert not usage.is_potentially_underutilized(300, threshold=0.1)


def test_entire_module_counts_as_namespace():
    usage = PackageUsage(package_name="fs")
    usage.fold(Import("fs", [EntireSpecifier("fs")], ImportKind.COMMONJS), "a.js")
    assert usage.uses_namespace
    assert usage.utilization_percentage(50) == 100.0


def test_side_effect_only():
    usage = PackageUsage(package_name="polyfill")
    usage.fold(Import("polyfill", [SideEffectSpecifier()]), "a.js")
    assert usage.has_side_effects
    assert usage.is_side_effect_only()
    assert usage.export_count() == 0

    usage.fold(Import("polyfill", [DefaultSpecifier("p")]), "b.js")
    assert not usage.is_side_effect_only()


def test_fold_rejects_unknown_specifier():
    usage = PackageUsage(package_name="x")
    with pytest.raises(TypeError):
        usage.fold(Import("x", ["bogus"]), "a.js")


def test_project_aggregation():
    pi = ProjectImports()
    pi.add_file_imports("src/a.js", [
        Import("react", [DefaultSpecifier("React")] + _named("useState")),
        Import("lodash/debounce", [DefaultSpecifier("debounce")]),
        Import("./utils", _named("helper")),
    ])
    pi.add_file_imports("src/b.js", [
        Import("react", _named("useState", "useEffect")),
        Import("@/components/Button", [DefaultSpecifier("Button")]),
    ])

    assert pi.files_analyzed == 2
    assert pi.imported_packages() == ["lodash", "react"]

    react = pi.get_package("react")
    assert react.importing_files == {"src/a.js", "src/b.js"}
    assert react.named_imports == {"useState", "useEffect"}
    assert react.uses_default
    assert react.export_count() == 3

    assert pi.get_package("./utils") is None
    assert set(pi.local_imports()) == {"src/a.js", "src/b.js"}
    assert [i.source for i in pi.local_imports()["src/b.js"]] == ["@/components/Button"]


def test_file_without_imports_still_counts():
    pi = ProjectImports()
    pi.add_file_imports("empty.js", [])
    assert pi.files_analyzed == 1
    assert pi.package_usage == {}


def test_errors_and_skips_are_recorded():
    pi = ProjectImports()
    pi.add_parse_error("bad.js", "source is not valid UTF-8")
    pi.add_skipped_file("style.css")

    data = pi.to_dict()
    assert data["files_analyzed"] == 0
    assert data["parse_errors"] == [{"file_path": "bad.js", "message": "source is not valid UTF-8"}]
    assert data["skipped_files"] == ["style.css"]


def test_to_dict_includes_utilization():
    pi = ProjectImports()
    pi.add_file_imports("a.js", [Import("lodash", _named("map"))])
    data = pi.to_dict({"lodash": 4})

    lodash = data["packages"]["lodash"]
    assert lodash["named_imports"] == ["map"]
    assert lodash["total_exports"] == 4
    assert lodash["utilization"] == 25.0
    assert data["imports_by_file"]["a.js"][0]["specifiers"] == [
        {"type": "named", "imported": "map", "local": "map"}
    ]
