"""Tests for manifest discovery and parsing."""

from __future__ import annotations

from pathlib import Path

import pytest

from pkgdoc.errors import InvalidField, ManifestNotFound
from pkgdoc.manifest import find_manifest, load_manifest, load_workspace_manifests, parse_json
from tests._fixtures.package_builder import PackageBuilder


def test_load_manifest_from_directory(package_builder: PackageBuilder) -> None:
    package_builder.manifest(
        {"name": "demo", "types": "./index.d.ts", "typings": "./other.d.ts", "exports": "./index.d.ts"}
    )

    manifest = load_manifest(package_builder.path())

    assert manifest.name == "demo"
    assert manifest.directory == package_builder.path()
    assert manifest.path == package_builder.path("package.json")
    assert manifest.types == "./index.d.ts"
    assert manifest.typings == "./other.d.ts"
    assert manifest.exports == "./index.d.ts"
    assert manifest.data["name"] == "demo"


def test_load_manifest_ignores_non_string_fields(package_builder: PackageBuilder) -> None:
    package_builder.manifest({"name": 3, "types": ["index.d.ts"]})

    manifest = load_manifest(package_builder.path("package.json"))

    assert manifest.name is None
    assert manifest.types is None
    assert manifest.exports is None


def test_load_manifest_missing_raises(tmp_path: Path) -> None:
    with pytest.raises(ManifestNotFound):
        load_manifest(tmp_path)


def test_load_manifest_rejects_non_object(package_builder: PackageBuilder) -> None:
    package_builder.write({"package.json": "[1, 2]"})

    with pytest.raises(InvalidField) as excinfo:
        load_manifest(package_builder.path())

    assert excinfo.value.field == "path"


def test_find_manifest_walks_upward(package_builder: PackageBuilder) -> None:
    package_builder.manifest({"name": "demo"})
    nested = package_builder.path("src/deep")
    nested.mkdir(parents=True)

    assert find_manifest(nested) == package_builder.path("package.json")


def test_find_manifest_respects_stop(package_builder: PackageBuilder) -> None:
    package_builder.manifest({"name": "demo"})
    nested = package_builder.path("src")
    nested.mkdir()

    assert find_manifest(nested, stop=nested) is None


def test_parse_json_preserves_duplicate_pairs() -> None:
    data = parse_json('{"a": 1, "a": 2}')

    assert data == {"a": 2}
    assert data.pairs == [("a", 1), ("a", 2)]


def test_load_workspace_manifests(package_builder: PackageBuilder) -> None:
    root = package_builder.manifest({"name": "root", "workspaces": ["packages/*"]})
    package_builder.manifest({"name": "b"}, "packages/b/package.json")
    package_builder.manifest({"name": "a"}, "packages/a/package.json")
    package_builder.touch("packages/no-manifest/index.d.ts")

    members = load_workspace_manifests(load_manifest(root))

    assert [member.name for member in members] == ["a", "b"]


def test_workspaces_object_form(package_builder: PackageBuilder) -> None:
    root = package_builder.manifest({"name": "root", "workspaces": {"packages": ["libs/*"]}})
    package_builder.manifest({"name": "lib"}, "libs/lib/package.json")

    manifest = load_manifest(root)

    assert manifest.workspaces == ("libs/*",)
    assert [member.name for member in load_workspace_manifests(manifest)] == ["lib"]
