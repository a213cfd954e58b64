"""Collect the entry-point files handed to the documentation generator."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from .errors import INVALID_DECLARATION_FILE, NoEntryPoints
from .exports import ROOT_SUBPATH, is_pattern
from .logging import Diagnostics
from .manifest import EXCLUDES
from .models import DEFAULT_EXPORT_CONDITION, ExportMap, Manifest

# Only allow standard JS / TS files.
ALLOWED_FILE_PATTERN = re.compile(r"\.(js|mjs|ts|mts)$")
DTS_FILE_PATTERN = re.compile(r"\.d\.(cts|ts|mts)$")


def is_dts_file(path: str | Path) -> bool:
    return bool(DTS_FILE_PATTERN.search(Path(path).as_posix()))


def is_allowed_file(path: str | Path) -> bool:
    posix = Path(path).as_posix()
    return bool(DTS_FILE_PATTERN.search(posix) or ALLOWED_FILE_PATTERN.search(posix))


class EntryPointBuilder:
    """Accumulates candidate entry points and freezes them into an ordered set."""

    def __init__(self) -> None:
        self._paths: Dict[str, None] = {}

    def add(self, path: Path) -> None:
        self._paths.setdefault(Path(path).as_posix(), None)

    def __len__(self) -> int:
        return len(self._paths)

    def freeze(self) -> Tuple[str, ...]:
        return tuple(self._paths)


def collect_entry_points(
    manifest: Manifest,
    export_map: ExportMap,
    condition: str = DEFAULT_EXPORT_CONDITION,
    strict: bool = False,
    diagnostics: Diagnostics | None = None,
    is_file: Callable[[str], bool] = os.path.isfile,
) -> Tuple[str, ...]:
    """Return the absolute entry points for ``manifest``.

    Resolved ``exports`` win; otherwise, for the ``types`` condition only, the
    ``types`` then ``typings`` properties are consulted. Candidates failing the
    file filter are reported and kept unless ``strict`` is set.
    """
    diagnostics = diagnostics or Diagnostics()
    builder = EntryPointBuilder()
    check = is_dts_file if condition == DEFAULT_EXPORT_CONDITION else is_allowed_file

    candidates: List[Tuple[str, Path]] = []
    if export_map:
        for subpath, path in export_map.items():
            candidates.append((f"exports['{subpath}']", path))
    elif condition == DEFAULT_EXPORT_CONDITION:
        diagnostics.verbose("No 'exports' conditions found in 'package.json'.")
        fallback = _types_fallback(manifest)
        if fallback is not None:
            prop, value = fallback
            diagnostics.verbose(f"Loading entry point from package.json '{prop}' property.")
            candidates.append((f"'{prop}' property", Path(os.path.normpath(manifest.directory / value))))

    for label, path in candidates:
        if not check(path):
            kind = "a declaration file" if condition == DEFAULT_EXPORT_CONDITION else "an allowed source file"
            diagnostics.warning(
                f"{label} in package.json does not reference {kind}: {path.as_posix()}",
                code=INVALID_DECLARATION_FILE,
            )
            if strict:
                continue
        if not is_pattern(path.as_posix()) and not is_file(str(path)):
            diagnostics.warning(f"{label} in package.json references a missing file: {path.as_posix()}")
            continue
        diagnostics.verbose(path.as_posix())
        builder.add(path)

    if not len(builder):
        raise NoEntryPoints(
            f"No entry points found in {manifest.path.as_posix()} for export condition '{condition}'.",
            field="path",
        )
    return builder.freeze()


def collect_directory(directory: Path) -> Tuple[str, ...]:
    """Return every declaration file below ``directory`` in sorted order."""
    directory = directory.expanduser().resolve()
    builder = EntryPointBuilder()
    for path in sorted(directory.rglob("*")):
        if not path.is_file() or not is_dts_file(path):
            continue
        if any(part in EXCLUDES for part in path.relative_to(directory).parts):
            continue
        builder.add(path)
    if not len(builder):
        raise NoEntryPoints(
            f"No declaration files found in directory: {directory.as_posix()}", field="dir"
        )
    return builder.freeze()


def build_module_names(
    manifest: Manifest,
    export_map: ExportMap,
    entry_points: Tuple[str, ...],
    package_name: Optional[str] = None,
) -> Dict[str, str]:
    """Map each entry point to the module name readers will import it by.

    Keys are absolute entry paths, which is how the generator looks up module
    name substitutions. Two manifests therefore only collide on a name when
    both reach the same entry file, e.g. a workspace root re-exporting a
    member package's declarations under its own name.
    """
    name = package_name or manifest.name
    if not name:
        return {}
    included = set(entry_points)
    names: Dict[str, str] = {}
    if export_map:
        for subpath, path in export_map.items():
            key = path.as_posix()
            if is_pattern(subpath) or key not in included:
                continue
            names[key] = name if subpath == ROOT_SUBPATH else f"{name}/{subpath[2:]}"
    else:
        for key in entry_points:
            names[key] = name
    return names


def _types_fallback(manifest: Manifest) -> Optional[Tuple[str, str]]:
    if manifest.types is not None:
        return "types", manifest.types
    if manifest.typings is not None:
        return "typings", manifest.typings
    return None


__all__ = [
    "ALLOWED_FILE_PATTERN",
    "DTS_FILE_PATTERN",
    "EntryPointBuilder",
    "build_module_names",
    "collect_directory",
    "collect_entry_points",
    "is_allowed_file",
    "is_dts_file",
]
