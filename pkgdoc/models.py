"""Core data models shared across pkgdoc components."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

DEFAULT_EXPORT_CONDITION = "types"
DEFAULT_OUTPUT = "docs"
NAV_STYLES = ("compact", "flat")


def freeze_mapping(value: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    """Return a read-only copy of ``value`` (empty when ``None``)."""
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True)
class Manifest:
    """Parsed package.json; immutable once loaded."""

    path: Path
    directory: Path
    name: Optional[str]
    exports: Any
    types: Optional[str]
    typings: Optional[str]
    workspaces: Tuple[str, ...] = ()
    data: Mapping[str, Any] = field(default_factory=dict)


class ExportMap(Mapping):
    """Ordered, read-only mapping of export subpath to absolute file path."""

    def __init__(self, entries: Sequence[Tuple[str, Path]] = ()) -> None:
        self._entries: Dict[str, Path] = dict(entries)

    def __getitem__(self, key: str) -> Path:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ExportMap({list(self._entries.items())!r})"


@dataclass
class GenerateRequest:
    """Caller-supplied generation settings prior to validation."""

    export_condition: Any = DEFAULT_EXPORT_CONDITION
    output: Any = DEFAULT_OUTPUT
    path: Any = None
    dir: Any = None
    packages: Any = None
    workspaces: bool = False
    package_name: Any = None
    nav_style: Any = None
    tsconfig_path: Any = None
    compiler_options: Any = None
    typedoc_options: Any = None
    typedoc_path: Any = None
    link_plugins: Any = None
    strict_declarations: bool = False


@dataclass(frozen=True)
class GenerateConfig:
    """Validated, immutable configuration handed to the documentation generator.

    Instances compare by value but are unhashable: the mapping fields are
    read-only views, not hashable values.
    """

    __hash__ = None  # type: ignore[assignment]

    export_condition: str
    output: str
    cwd: str
    entry_points: Tuple[str, ...]
    compiler_options: Mapping[str, Any]
    path: Optional[str] = None
    dir: Optional[str] = None
    packages: Tuple[str, ...] = ()
    link_plugins: Tuple[str, ...] = ()
    link_plugin_names: Tuple[str, ...] = ()
    module_names: Mapping[str, str] = field(default_factory=lambda: freeze_mapping(None))
    nav_style: Optional[str] = None
    package_name: Optional[str] = None
    tsconfig_path: Optional[str] = None
    typedoc_path: Optional[str] = None
    typedoc_json: Mapping[str, Any] = field(default_factory=lambda: freeze_mapping(None))
    typedoc_options: Optional[Mapping[str, Any]] = None
    from_package: bool = False
    entry_points_dts: bool = False
    has_compiler_options: bool = False
    strict_declarations: bool = False

    def to_request(self) -> GenerateRequest:
        """Return a request that validates back to this configuration."""
        return GenerateRequest(
            export_condition=self.export_condition,
            output=self.output,
            path=self.path,
            dir=self.dir,
            packages=list(self.packages) if self.packages else None,
            package_name=self.package_name,
            nav_style=self.nav_style,
            tsconfig_path=self.tsconfig_path,
            compiler_options=dict(self.compiler_options) if self.has_compiler_options else None,
            typedoc_options=dict(self.typedoc_options) if self.typedoc_options is not None else None,
            typedoc_path=self.typedoc_path,
            link_plugins=list(self.link_plugin_names) if self.link_plugin_names else None,
            strict_declarations=self.strict_declarations,
        )

    def to_payload(self) -> Dict[str, Any]:
        """Render the structure consumed by the documentation generator."""
        return {
            "compilerOptions": dict(self.compiler_options),
            "cwd": self.cwd,
            "dmtModuleNames": dict(self.module_names),
            "dmtNavStyle": self.nav_style,
            "entryPoints": list(self.entry_points),
            "entryPointsDTS": self.entry_points_dts,
            "fromPackage": self.from_package,
            "hasCompilerOptions": self.has_compiler_options,
            "linkPlugins": list(self.link_plugins),
            "output": self.output,
            "typedocJSON": dict(self.typedoc_json),
            "typedocOptions": dict(self.typedoc_options) if self.typedoc_options is not None else None,
        }


def as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]
