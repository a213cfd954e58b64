"""Locate and parse package.json manifests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from .errors import InvalidField, ManifestNotFound
from .models import Manifest

MANIFEST_NAME = "package.json"
EXCLUDES = {"node_modules", ".git"}


class JsonObject(dict):
    """JSON object that also remembers every key/value pair in declaration order.

    ``json`` collapses duplicate keys (last value wins); ``pairs`` keeps them so
    the exports resolver can report conflicting subpath declarations.
    """

    def __init__(self, pairs: Sequence[Tuple[str, Any]]) -> None:
        super().__init__(pairs)
        self.pairs: List[Tuple[str, Any]] = list(pairs)


def parse_json(text: str) -> Any:
    return json.loads(text, object_pairs_hook=JsonObject)


def find_manifest(start: Path, stop: Optional[Path] = None) -> Optional[Path]:
    """Return the nearest package.json at or above ``start``.

    The search ends after ``stop`` when given, otherwise at the filesystem root.
    """
    current = start.expanduser().resolve()
    if current.is_file():
        current = current.parent
    stop_dir = stop.expanduser().resolve() if stop is not None else None
    while True:
        candidate = current / MANIFEST_NAME
        if candidate.is_file():
            return candidate
        if stop_dir is not None and current == stop_dir:
            return None
        if current.parent == current:
            return None
        current = current.parent


def load_manifest(path: Path) -> Manifest:
    """Load a manifest from a package.json file or a directory containing one."""
    path = path.expanduser()
    manifest_path = path / MANIFEST_NAME if path.is_dir() else path
    if not manifest_path.is_file():
        raise ManifestNotFound(f"No 'package.json' found in: {path.as_posix()}", field="path")
    manifest_path = manifest_path.resolve()

    try:
        data = parse_json(manifest_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidField(f"Failed to parse {manifest_path.as_posix()}: {exc}", field="path") from exc
    if not isinstance(data, dict):
        raise InvalidField(
            f"'package.json' must contain an object at the root: {manifest_path.as_posix()}",
            field="path",
        )

    return Manifest(
        path=manifest_path,
        directory=manifest_path.parent,
        name=_as_str(data.get("name")),
        exports=data.get("exports"),
        types=_as_str(data.get("types")),
        typings=_as_str(data.get("typings")),
        workspaces=tuple(_workspace_patterns(data.get("workspaces"))),
        data=data,
    )


def load_workspace_manifests(root: Manifest) -> List[Manifest]:
    """Return the member manifests declared by the root manifest's ``workspaces``."""
    found: List[Manifest] = []
    seen = set()
    for pattern in root.workspaces:
        for directory in sorted(root.directory.glob(pattern)):
            if not directory.is_dir() or _should_skip(directory.relative_to(root.directory).parts):
                continue
            manifest_path = directory / MANIFEST_NAME
            if not manifest_path.is_file():
                continue
            resolved = manifest_path.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            found.append(load_manifest(resolved))
    return found


def _workspace_patterns(value: Any) -> Iterable[str]:
    # npm/yarn accept either an array or {"packages": [...]}.
    if isinstance(value, dict):
        value = value.get("packages")
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _should_skip(parts: Iterable[str]) -> bool:
    return any(part in EXCLUDES for part in parts)


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


__all__ = [
    "JsonObject",
    "MANIFEST_NAME",
    "find_manifest",
    "load_manifest",
    "load_workspace_manifests",
    "parse_json",
]
