"""Tests for pkgdoc.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from pkgdoc.compiler import DEFAULT_COMPILER_OPTIONS
from pkgdoc.config import ConfigError, load_request, validate_config
from pkgdoc.errors import (
    InvalidCompilerOptions,
    InvalidField,
    InvalidLinkPluginCombination,
    ManifestNotFound,
    ModuleNameCollision,
    NoEntryPoints,
)
from pkgdoc.logging import Diagnostics
from pkgdoc.models import GenerateConfig, GenerateRequest
from pkgdoc.plugins import LINK_PLUGINS
from tests._fixtures.package_builder import PackageBuilder


@pytest.fixture
def typed_package(package_builder: PackageBuilder) -> PackageBuilder:
    package_builder.manifest(
        {
            "name": "demo",
            "exports": {
                ".": {"types": "./index.d.ts", "import": "./index.js"},
                "./sub": {"types": "./sub/index.d.ts", "import": "./sub/index.js"},
            },
        }
    )
    package_builder.touch("index.d.ts", "index.js", "sub/index.d.ts", "sub/index.js")
    return package_builder


def test_manifest_in_cwd_is_discovered(typed_package: PackageBuilder) -> None:
    config = validate_config(GenerateRequest(), cwd=typed_package.path())

    assert isinstance(config, GenerateConfig)
    assert config.from_package is True
    assert config.path == typed_package.path("package.json").as_posix()
    assert config.entry_points == (
        typed_package.path("index.d.ts").as_posix(),
        typed_package.path("sub/index.d.ts").as_posix(),
    )
    assert config.entry_points_dts is True
    assert dict(config.module_names) == {
        typed_package.path("index.d.ts").as_posix(): "demo",
        typed_package.path("sub/index.d.ts").as_posix(): "demo/sub",
    }
    assert config.output == "docs"
    assert config.export_condition == "types"
    assert dict(config.compiler_options) == DEFAULT_COMPILER_OPTIONS
    assert config.has_compiler_options is False


def test_missing_manifest_fails(tmp_path: Path) -> None:
    diagnostics = Diagnostics()

    with pytest.raises(ManifestNotFound):
        validate_config(GenerateRequest(), cwd=tmp_path, diagnostics=diagnostics)

    assert diagnostics.messages("error")


def test_explicit_path_bypasses_manifest_discovery(tmp_path: Path) -> None:
    declaration = tmp_path / "types" / "index.d.ts"
    declaration.parent.mkdir()
    declaration.write_text("export {};\n", encoding="utf-8")

    config = validate_config(GenerateRequest(path="types/index.d.ts"), cwd=tmp_path)

    assert config.entry_points == (declaration.resolve().as_posix(),)
    assert config.from_package is False
    assert config.entry_points_dts is True
    assert dict(config.module_names) == {}


def test_explicit_source_file_is_not_dts(tmp_path: Path) -> None:
    source = tmp_path / "index.ts"
    source.write_text("export const a = 1;\n", encoding="utf-8")

    config = validate_config(GenerateRequest(path=str(source)), cwd=tmp_path)

    assert config.entry_points_dts is False


def test_explicit_manifest_path(typed_package: PackageBuilder, tmp_path: Path) -> None:
    config = validate_config(
        GenerateRequest(path=str(typed_package.path("package.json")), export_condition="import"),
        cwd=tmp_path,
    )

    assert config.from_package is True
    assert config.entry_points == (
        typed_package.path("index.js").as_posix(),
        typed_package.path("sub/index.js").as_posix(),
    )
    assert config.entry_points_dts is False


@pytest.mark.parametrize(
    "request_kwargs, field",
    [
        ({"nav_style": "tree"}, "nav_style"),
        ({"export_condition": 3}, "export_condition"),
        ({"output": None}, "output"),
        ({"package_name": ["x"]}, "package_name"),
        ({"path": 5}, "path"),
        ({"path": "missing.d.ts"}, "path"),
        ({"path": "README.md"}, "path"),
        ({"dir": "nowhere"}, "dir"),
        ({"packages": "demo"}, "packages"),
        ({"tsconfig_path": "tsconfig.missing.json"}, "tsconfig_path"),
        ({"compiler_options": ["strict"]}, "compiler_options"),
        ({"typedoc_options": "bad"}, "typedoc_options"),
        ({"typedoc_path": "typedoc.missing.json"}, "typedoc_path"),
        ({"link_plugins": 7}, "link_plugins"),
    ],
)
def test_invalid_fields_fail_fast(
    typed_package: PackageBuilder, request_kwargs, field: str
) -> None:
    typed_package.write({"README.md": "# demo\n"})
    diagnostics = Diagnostics()

    with pytest.raises(InvalidField) as excinfo:
        validate_config(GenerateRequest(**request_kwargs), cwd=typed_package.path(), diagnostics=diagnostics)

    assert excinfo.value.field == field
    assert len(diagnostics.messages("error")) == 1


def test_sources_are_mutually_exclusive(typed_package: PackageBuilder) -> None:
    with pytest.raises(InvalidField):
        validate_config(
            GenerateRequest(path="index.d.ts", dir="sub"),
            cwd=typed_package.path(),
        )


def test_dom_and_worker_fail_regardless_of_other_fields(typed_package: PackageBuilder) -> None:
    with pytest.raises(InvalidLinkPluginCombination):
        validate_config(
            GenerateRequest(link_plugins=["dom", "worker"], nav_style="flat", output="api"),
            cwd=typed_package.path(),
        )


def test_link_plugins_translated(typed_package: PackageBuilder) -> None:
    diagnostics = Diagnostics()

    config = validate_config(
        GenerateRequest(link_plugins=["dom", "nope", "dom"]),
        cwd=typed_package.path(),
        diagnostics=diagnostics,
    )

    assert config.link_plugins == (LINK_PLUGINS["dom"],)
    assert config.link_plugin_names == ("dom",)
    assert diagnostics.messages("warning") == ["API link warning: Unknown API link 'nope'."]


def test_compiler_options_from_tsconfig_and_inline(typed_package: PackageBuilder) -> None:
    typed_package.write({"tsconfig.json": '{"compilerOptions": {"target": "ES2020", "strict": true}}'})

    config = validate_config(
        GenerateRequest(tsconfig_path="tsconfig.json", compiler_options={"target": "es2022"}),
        cwd=typed_package.path(),
    )

    assert config.has_compiler_options is True
    assert dict(config.compiler_options) == {"target": "es2022", "strict": True}


def test_invalid_compiler_options_report_every_message(typed_package: PackageBuilder) -> None:
    diagnostics = Diagnostics()

    with pytest.raises(InvalidCompilerOptions) as excinfo:
        validate_config(
            GenerateRequest(compiler_options={"target": "es1", "strict": 1}),
            cwd=typed_package.path(),
            diagnostics=diagnostics,
        )

    assert len(excinfo.value.messages) == 2
    assert len(diagnostics.messages("error")) == 2


def test_generated_tsconfig_is_accepted(typed_package: PackageBuilder) -> None:
    typed_package.write(
        {
            "tsconfig.json": """
            {
              // Visit https://aka.ms/tsconfig to read more about this file
              "compilerOptions": {
                "target": "ES2024",
                "module": "node18",
                "sourceMap": true,
                "isolatedModules": true,
                "strictNullChecks": true,
                "forceConsistentCasingInFileNames": true,
              },
            }
            """
        }
    )

    config = validate_config(GenerateRequest(tsconfig_path="tsconfig.json"), cwd=typed_package.path())

    assert config.has_compiler_options is True
    assert config.compiler_options["target"] == "es2024"
    assert config.compiler_options["module"] == "node18"
    assert config.compiler_options["sourceMap"] is True


def test_custom_compiler_validator_is_used(typed_package: PackageBuilder) -> None:
    class RejectAll:
        def validate(self, options):
            return {}, ["rejected"]

    with pytest.raises(InvalidCompilerOptions) as excinfo:
        validate_config(GenerateRequest(), cwd=typed_package.path(), compiler_validator=RejectAll())

    assert excinfo.value.messages == ["rejected"]


def test_typedoc_json_loaded(typed_package: PackageBuilder) -> None:
    typed_package.write({"typedoc.json": '{"name": "Demo API"}'})

    config = validate_config(
        GenerateRequest(typedoc_path="typedoc.json", typedoc_options={"excludePrivate": True}),
        cwd=typed_package.path(),
    )

    assert dict(config.typedoc_json) == {"name": "Demo API"}
    assert dict(config.typedoc_options) == {"excludePrivate": True}


def test_typedoc_json_must_be_object(typed_package: PackageBuilder) -> None:
    typed_package.write({"typedoc.json": "[]"})

    with pytest.raises(InvalidField):
        validate_config(GenerateRequest(typedoc_path="typedoc.json"), cwd=typed_package.path())


def test_directory_source(package_builder: PackageBuilder) -> None:
    package_builder.touch("types/a.d.ts", "types/b.d.ts")

    config = validate_config(GenerateRequest(dir="types"), cwd=package_builder.path())

    assert config.dir == package_builder.path("types").as_posix()
    assert config.entry_points == (
        package_builder.path("types/a.d.ts").as_posix(),
        package_builder.path("types/b.d.ts").as_posix(),
    )


def test_manifest_without_entry_points_produces_no_config(package_builder: PackageBuilder) -> None:
    package_builder.manifest({"name": "empty"})

    with pytest.raises(NoEntryPoints):
        validate_config(GenerateRequest(), cwd=package_builder.path())


def test_package_name_override(typed_package: PackageBuilder) -> None:
    config = validate_config(GenerateRequest(package_name="Demo"), cwd=typed_package.path())

    assert sorted(config.module_names.values()) == ["Demo", "Demo/sub"]


def test_packages_are_merged(package_builder: PackageBuilder) -> None:
    package_builder.manifest({"name": "a", "types": "./index.d.ts"}, "a/package.json")
    package_builder.manifest({"name": "b", "types": "./index.d.ts"}, "b/package.json")
    package_builder.touch("a/index.d.ts", "b/index.d.ts")

    config = validate_config(GenerateRequest(packages=["a", "b/package.json"]), cwd=package_builder.path())

    assert config.entry_points == (
        package_builder.path("a/index.d.ts").as_posix(),
        package_builder.path("b/index.d.ts").as_posix(),
    )
    assert config.packages == (
        package_builder.path("a/package.json").as_posix(),
        package_builder.path("b/package.json").as_posix(),
    )
    assert config.path is None
    assert set(config.module_names.values()) == {"a", "b"}


def test_shared_entry_with_different_names_collides(package_builder: PackageBuilder) -> None:
    package_builder.manifest({"name": "a", "types": "../shared.d.ts"}, "a/package.json")
    package_builder.manifest({"name": "b", "types": "../shared.d.ts"}, "b/package.json")
    package_builder.touch("shared.d.ts")

    with pytest.raises(ModuleNameCollision):
        validate_config(GenerateRequest(packages=["a", "b"]), cwd=package_builder.path())


def test_workspaces_expand_member_packages(package_builder: PackageBuilder) -> None:
    package_builder.manifest({"name": "root", "private": True, "workspaces": ["packages/*"]})
    package_builder.manifest({"name": "one", "types": "./index.d.ts"}, "packages/one/package.json")
    package_builder.manifest({"name": "two", "exports": {".": {"types": "./main.d.ts"}}}, "packages/two/package.json")
    package_builder.touch("packages/one/index.d.ts", "packages/two/main.d.ts")

    config = validate_config(GenerateRequest(workspaces=True), cwd=package_builder.path())

    assert list(config.module_names.values()) == ["one", "two"]
    assert len(config.packages) == 2


def test_workspaces_without_members_fail(typed_package: PackageBuilder) -> None:
    with pytest.raises(InvalidField) as excinfo:
        validate_config(GenerateRequest(workspaces=True), cwd=typed_package.path())

    assert excinfo.value.field == "workspaces"


def test_validation_is_idempotent(typed_package: PackageBuilder) -> None:
    typed_package.write(
        {
            "tsconfig.json": '{"compilerOptions": {"target": "ES2022"}}',
            "typedoc.json": '{"name": "Demo"}',
        }
    )
    request = GenerateRequest(
        link_plugins=["es", "dom"],
        nav_style="compact",
        tsconfig_path="tsconfig.json",
        typedoc_path="typedoc.json",
        typedoc_options={"excludePrivate": True},
    )

    config = validate_config(request, cwd=typed_package.path())
    again = validate_config(config.to_request(), cwd=typed_package.path())

    assert again == config


def test_config_compares_by_value_but_is_unhashable(typed_package: PackageBuilder) -> None:
    config = validate_config(GenerateRequest(), cwd=typed_package.path())

    assert config == validate_config(GenerateRequest(), cwd=typed_package.path())
    with pytest.raises(TypeError):
        hash(config)


def test_merged_validation_is_idempotent(package_builder: PackageBuilder) -> None:
    package_builder.manifest({"name": "a", "types": "./index.d.ts"}, "a/package.json")
    package_builder.manifest({"name": "b", "types": "./index.d.ts"}, "b/package.json")
    package_builder.touch("a/index.d.ts", "b/index.d.ts")

    config = validate_config(GenerateRequest(packages=["a", "b"]), cwd=package_builder.path())

    assert validate_config(config.to_request(), cwd=package_builder.path()) == config


def test_load_request_returns_defaults_when_missing(tmp_path: Path) -> None:
    request = load_request(tmp_path)

    assert request == GenerateRequest()


def test_load_request_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".pkgdoc.yml"
    config_file.write_text(
        """
export_condition: import
output: site/api
nav_style: flat
tsconfig_path: tsconfig.docs.json
link_plugins: dom, es
packages:
  - packages/a
  - packages/b
strict_declarations: true
""",
        encoding="utf-8",
    )

    request = load_request(config_file)

    assert request.export_condition == "import"
    assert request.output == "site/api"
    assert request.nav_style == "flat"
    assert request.tsconfig_path == str(tmp_path.resolve() / "tsconfig.docs.json")
    assert request.link_plugins == ["dom", "es"]
    assert request.packages == [str(tmp_path.resolve() / "packages/a"), str(tmp_path.resolve() / "packages/b")]
    assert request.strict_declarations is True


@pytest.mark.parametrize("content", ["- a\n- b\n", "unknown_key: 1\n", "output: [unclosed\n"])
def test_load_request_rejects_bad_files(tmp_path: Path, content: str) -> None:
    (tmp_path / ".pkgdoc.yml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_request(tmp_path)
