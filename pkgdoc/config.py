"""Request loading (.pkgdoc.yml) and validation into a GenerateConfig."""

from __future__ import annotations

import json
import os
from collections.abc import Iterable, Mapping
from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .compiler import (
    DEFAULT_COMPILER_OPTIONS,
    BuiltinCompilerOptionsValidator,
    CompilerOptionsValidator,
    load_tsconfig,
)
from .entrypoints import (
    build_module_names,
    collect_directory,
    collect_entry_points,
    is_allowed_file,
    is_dts_file,
)
from .errors import InvalidCompilerOptions, InvalidField, ManifestNotFound, PkgDocError
from .exports import resolve_exports
from .logging import Diagnostics
from .manifest import MANIFEST_NAME, find_manifest, load_manifest, load_workspace_manifests
from .merge import merge_configs
from .models import NAV_STYLES, GenerateConfig, GenerateRequest, Manifest, as_str_list, freeze_mapping
from .plugins import resolve_link_plugins

CONFIG_FILENAME = ".pkgdoc.yml"

# Request fields holding filesystem paths; resolved against the config file directory.
_PATH_FIELDS = ("path", "dir", "tsconfig_path", "typedoc_path")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


def load_request(config_path: Path) -> GenerateRequest:
    """Load request defaults from ``.pkgdoc.yml`` (a directory or the file itself)."""
    config_file = _resolve_config_path(config_path)
    if not config_file.exists():
        return GenerateRequest()

    text = config_file.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text) if text.strip() else {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {config_file.name}: {exc}") from exc
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    known = {item.name for item in fields(GenerateRequest)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown keys in {CONFIG_FILENAME}: {', '.join(unknown)}")

    root = config_file.parent
    values: Dict[str, Any] = dict(data)
    for name in _PATH_FIELDS:
        if isinstance(values.get(name), str):
            values[name] = str(root / values[name])
    if values.get("packages") is not None:
        values["packages"] = [str(root / item) for item in as_str_list(values["packages"])]
    if isinstance(values.get("link_plugins"), str):
        values["link_plugins"] = [item.strip() for item in values["link_plugins"].split(",") if item.strip()]
    return GenerateRequest(**values)


def validate_config(
    request: GenerateRequest,
    *,
    cwd: Path | None = None,
    diagnostics: Diagnostics | None = None,
    compiler_validator: CompilerOptionsValidator | None = None,
) -> GenerateConfig:
    """Validate ``request`` and resolve its entry points.

    Validation fails fast: the first invalid field is reported at error level
    through ``diagnostics`` and raised as a ``PkgDocError`` subclass. No partial
    configuration is ever returned.
    """
    diagnostics = diagnostics or Diagnostics()
    try:
        return _validate(
            request,
            Path(cwd or os.getcwd()).resolve(),
            diagnostics,
            compiler_validator or BuiltinCompilerOptionsValidator(),
        )
    except InvalidCompilerOptions as exc:
        for message in exc.messages:
            diagnostics.error(f"[TS] {message}")
        raise
    except PkgDocError as exc:
        diagnostics.error(f"Error: {exc.message}")
        raise


def _validate(
    request: GenerateRequest,
    cwd: Path,
    diagnostics: Diagnostics,
    compiler_validator: CompilerOptionsValidator,
) -> GenerateConfig:
    if request.nav_style is not None and request.nav_style not in NAV_STYLES:
        raise InvalidField("'nav_style' must be 'compact' or 'flat'.", field="nav_style")
    if not isinstance(request.export_condition, str):
        raise InvalidField("'export_condition' must be a string.", field="export_condition")
    if not isinstance(request.output, str):
        raise InvalidField("'output' must be a string.", field="output")
    if request.package_name is not None and not isinstance(request.package_name, str):
        raise InvalidField("'package_name' must be a string.", field="package_name")

    sources = [name for name in ("path", "dir", "packages") if getattr(request, name) is not None]
    if len(sources) > 1:
        raise InvalidField(
            f"Only one of 'path', 'dir' or 'packages' may be set; got {', '.join(sources)}.",
            field=sources[0],
        )

    path = _validate_path(request.path, cwd) if request.path is not None else None
    directory = _validate_dir(request.dir, cwd) if request.dir is not None else None
    packages = _validate_packages(request.packages, cwd) if request.packages is not None else None

    if path is None and directory is None and packages is None:
        found = find_manifest(cwd, stop=cwd)
        if found is None:
            raise ManifestNotFound(f"No '{MANIFEST_NAME}' found in: {cwd.as_posix()}", field="path")
        path = found

    tsconfig_path = _validate_file(request.tsconfig_path, "tsconfig_path", cwd)
    if request.compiler_options is not None and not isinstance(request.compiler_options, Mapping):
        raise InvalidField("'compiler_options' is not an object.", field="compiler_options")
    if request.typedoc_options is not None and not isinstance(request.typedoc_options, Mapping):
        raise InvalidField("'typedoc_options' is not an object.", field="typedoc_options")
    typedoc_path = _validate_file(request.typedoc_path, "typedoc_path", cwd)
    typedoc_json = _load_typedoc_json(typedoc_path) if typedoc_path is not None else {}

    # Link plugins last as there is additional verbose logging.
    link_names: Tuple[str, ...] = ()
    link_plugins: Tuple[str, ...] = ()
    if request.link_plugins is not None:
        link_names, link_plugins = resolve_link_plugins(request.link_plugins, diagnostics)

    compiler_options, has_compiler_options = _compiler_options(
        tsconfig_path, request.compiler_options, compiler_validator
    )

    base = GenerateConfig(
        export_condition=request.export_condition,
        output=request.output,
        cwd=cwd.as_posix(),
        entry_points=(),
        compiler_options=freeze_mapping(compiler_options),
        link_plugins=link_plugins,
        link_plugin_names=link_names,
        nav_style=request.nav_style,
        package_name=request.package_name,
        tsconfig_path=tsconfig_path.as_posix() if tsconfig_path is not None else None,
        typedoc_path=typedoc_path.as_posix() if typedoc_path is not None else None,
        typedoc_json=freeze_mapping(typedoc_json),
        typedoc_options=freeze_mapping(request.typedoc_options)
        if request.typedoc_options is not None
        else None,
        has_compiler_options=has_compiler_options,
        strict_declarations=bool(request.strict_declarations),
    )

    if directory is not None:
        entries = collect_directory(directory)
        return _with_entries(base, entries, dir=directory.as_posix())

    if packages is None and path is not None and path.name != MANIFEST_NAME:
        diagnostics.verbose(f"Using explicit entry point: {path.as_posix()}")
        return _with_entries(base, (path.as_posix(),), path=path.as_posix())

    if packages is not None:
        manifests = [load_manifest(item) for item in packages]
    else:
        root = load_manifest(path)
        manifests = [root]
        if request.workspaces:
            manifests = load_workspace_manifests(root)
            if not manifests:
                raise InvalidField(
                    f"'workspaces' in {root.path.as_posix()} declares no member packages.",
                    field="workspaces",
                )

    configs = [_manifest_config(base, manifest, diagnostics) for manifest in manifests]
    return merge_configs(configs)


def _manifest_config(base: GenerateConfig, manifest: Manifest, diagnostics: Diagnostics) -> GenerateConfig:
    diagnostics.verbose(f"Processing {manifest.path.as_posix()}")
    export_map = resolve_exports(
        manifest.exports, base.export_condition, manifest.directory, diagnostics=diagnostics
    )
    entries = collect_entry_points(
        manifest,
        export_map,
        base.export_condition,
        strict=base.strict_declarations,
        diagnostics=diagnostics,
    )
    module_names = build_module_names(manifest, export_map, entries, base.package_name)
    return replace(
        _with_entries(base, entries, path=manifest.path.as_posix()),
        module_names=freeze_mapping(module_names),
        from_package=True,
    )


def _with_entries(base: GenerateConfig, entries: Tuple[str, ...], **changes: Any) -> GenerateConfig:
    return replace(
        base,
        entry_points=entries,
        entry_points_dts=all(is_dts_file(entry) for entry in entries),
        **changes,
    )


def _compiler_options(
    tsconfig_path: Optional[Path],
    inline: Optional[Mapping[str, Any]],
    validator: CompilerOptionsValidator,
) -> Tuple[Dict[str, Any], bool]:
    options: Dict[str, Any] = {}
    if tsconfig_path is not None:
        options.update(load_tsconfig(tsconfig_path))
    if inline is not None:
        options.update(inline)
    has_options = tsconfig_path is not None or inline is not None
    if not has_options:
        options = dict(DEFAULT_COMPILER_OPTIONS)

    validated, messages = validator.validate(options)
    if messages:
        raise InvalidCompilerOptions(messages)
    return validated, has_options


def _absolute(value: str, cwd: Path) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else cwd / path


def _validate_path(value: Any, cwd: Path) -> Path:
    if not isinstance(value, str):
        raise InvalidField("'path' must be a string.", field="path")
    path = _absolute(value, cwd)
    if not path.is_file():
        raise InvalidField(f"'path' is not a file; {path.as_posix()}", field="path")
    if not (is_allowed_file(path) or path.name == MANIFEST_NAME):
        raise InvalidField(
            f"'path' is not an allowed entry point or '{MANIFEST_NAME}' file; {path.as_posix()}",
            field="path",
        )
    return path.resolve()


def _validate_dir(value: Any, cwd: Path) -> Path:
    if not isinstance(value, str):
        raise InvalidField("'dir' must be a string.", field="dir")
    path = _absolute(value, cwd)
    if not path.is_dir():
        raise InvalidField(f"'dir' is not a directory; {path.as_posix()}", field="dir")
    return path.resolve()


def _validate_packages(value: Any, cwd: Path) -> List[Path]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise InvalidField("'packages' must be an iterable list.", field="packages")
    packages: List[Path] = []
    for item in value:
        if not isinstance(item, str):
            raise InvalidField("'packages' entries must be strings.", field="packages")
        packages.append(_absolute(item, cwd))
    if not packages:
        raise InvalidField("'packages' must not be empty.", field="packages")
    return packages


def _validate_file(value: Any, name: str, cwd: Path) -> Optional[Path]:
    if value is None:
        return None
    if not isinstance(value, str) or not _absolute(value, cwd).is_file():
        raise InvalidField(f"'{name}' is not a file; {value}", field=name)
    return _absolute(value, cwd).resolve()


def _load_typedoc_json(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidField(f"Failed to parse {path.as_posix()}: {exc}", field="typedoc_path") from exc
    if not isinstance(data, dict):
        raise InvalidField(f"'typedoc_path' must contain an object: {path.as_posix()}", field="typedoc_path")
    return data


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


__all__ = ["CONFIG_FILENAME", "ConfigError", "load_request", "validate_config"]
