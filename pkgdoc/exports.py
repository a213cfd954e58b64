"""Resolve package.json ``exports`` trees under a single export condition.

The raw JSON is first parsed into a small tagged tree:

* ``ExportTarget`` - a string leaf (``"./index.d.ts"``)
* ``ExportConditions`` - an object keyed by condition names (``types``, ``import``...)
* ``ExportSubpaths`` - an object keyed by subpaths (``"."``, ``"./sub"``, ``"./*"``)
* ``ExportFallbacks`` - an array; the first alternative that resolves wins
* ``ExportBlocked`` - ``null``; the subpath is deliberately not exported

Resolution then walks the tree with an explicit precedence list of conditions,
e.g. ``["types", "default"]``. Conditions outside the list are never selected,
and a present condition whose subtree resolves to nothing falls through to the
next entry of the list.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .logging import Diagnostics
from .models import ExportMap

ROOT_SUBPATH = "."
DEFAULT_CONDITION = "default"


@dataclass(frozen=True)
class ExportTarget:
    value: str


@dataclass(frozen=True)
class ExportBlocked:
    pass


@dataclass(frozen=True)
class ExportFallbacks:
    options: Tuple["ExportNode", ...]


@dataclass(frozen=True)
class ExportConditions:
    entries: Tuple[Tuple[str, "ExportNode"], ...]


@dataclass(frozen=True)
class ExportSubpaths:
    entries: Tuple[Tuple[str, "ExportNode"], ...]


ExportNode = Union[ExportTarget, ExportBlocked, ExportFallbacks, ExportConditions, ExportSubpaths]


def default_precedence(condition: str) -> List[str]:
    """Return ``[condition, "default"]`` without duplicates."""
    if condition == DEFAULT_CONDITION:
        return [DEFAULT_CONDITION]
    return [condition, DEFAULT_CONDITION]


def parse_exports(tree: Any, diagnostics: Diagnostics | None = None) -> Optional[ExportNode]:
    """Parse a raw ``exports`` value; ``None`` when it cannot describe any export."""
    diagnostics = diagnostics or Diagnostics()
    if isinstance(tree, str):
        return ExportSubpaths(entries=((ROOT_SUBPATH, ExportTarget(tree)),))
    if isinstance(tree, list):
        return ExportSubpaths(entries=((ROOT_SUBPATH, _parse_node(tree, diagnostics)),))
    if not isinstance(tree, dict):
        return None

    pairs = _pairs(tree)
    subpaths = [(key, value) for key, value in pairs if key.startswith(".")]
    conditions = [(key, value) for key, value in pairs if not key.startswith(".")]

    if not subpaths:
        # Condition keys at the top level describe the "." export.
        return ExportSubpaths(entries=((ROOT_SUBPATH, _parse_node(tree, diagnostics)),))

    if conditions:
        ignored = ", ".join(f"'{key}'" for key, _ in conditions)
        diagnostics.warning(
            f"'exports' mixes subpath and condition keys; ignoring condition keys: {ignored}"
        )

    return ExportSubpaths(
        entries=tuple((key, _parse_node(value, diagnostics)) for key, value in subpaths)
    )


def resolve_exports(
    tree: Any,
    condition: str,
    directory: Path,
    precedence: Optional[Sequence[str]] = None,
    diagnostics: Diagnostics | None = None,
) -> ExportMap:
    """Return the ordered subpath -> absolute path mapping for ``condition``.

    An empty map means the manifest has no usable ``exports`` and the caller
    should fall back to ``types``/``typings``.
    """
    diagnostics = diagnostics or Diagnostics()
    order = list(precedence) if precedence is not None else default_precedence(condition)

    root = parse_exports(tree, diagnostics)
    if root is None:
        if tree is not None:
            diagnostics.verbose("'exports' in package.json is not an object or string; ignoring.")
        return ExportMap()
    assert isinstance(root, ExportSubpaths)

    resolved: Dict[str, Path] = {}
    seen = set()
    for subpath, node in root.entries:
        if subpath in seen:
            diagnostics.warning(
                f"Duplicate 'exports' subpath '{subpath}'; the last declaration wins."
            )
        seen.add(subpath)
        target = _select(node, order)
        if target is None:
            resolved.pop(subpath, None)
            diagnostics.verbose(f"No '{condition}' export condition for subpath '{subpath}'.")
            continue
        resolved[subpath] = _absolute(directory, target)
        diagnostics.verbose(f"Export '{subpath}' ({condition}): {resolved[subpath].as_posix()}")

    return ExportMap(list(resolved.items()))


def is_pattern(subpath: str) -> bool:
    return "*" in subpath


# ------------------------------------------------------------------
# Parsing


def _parse_node(value: Any, diagnostics: Diagnostics) -> ExportNode:
    if isinstance(value, str):
        return ExportTarget(value)
    if value is None:
        return ExportBlocked()
    if isinstance(value, list):
        return ExportFallbacks(options=tuple(_parse_node(item, diagnostics) for item in value))
    if isinstance(value, dict):
        entries = []
        for key, child in _pairs(value):
            if key.startswith("."):
                diagnostics.warning(
                    f"Subpath key '{key}' nested inside export conditions is ignored."
                )
                continue
            entries.append((key, _parse_node(child, diagnostics)))
        return ExportConditions(entries=tuple(entries))
    diagnostics.warning(f"Unsupported 'exports' target {value!r}; ignoring.")
    return ExportBlocked()


def _pairs(obj: dict) -> List[Tuple[str, Any]]:
    # JsonObject keeps duplicate keys; a plain dict cannot have any.
    pairs = getattr(obj, "pairs", None)
    if pairs is not None:
        return list(pairs)
    return list(obj.items())


# ------------------------------------------------------------------
# Selection


def _select(node: ExportNode, order: Sequence[str]) -> Optional[str]:
    if isinstance(node, ExportTarget):
        return node.value
    if isinstance(node, ExportBlocked):
        return None
    if isinstance(node, ExportFallbacks):
        for option in node.options:
            target = _select(option, order)
            if target is not None:
                return target
        return None
    if isinstance(node, ExportConditions):
        # Last declaration wins for repeated condition keys.
        available = dict(node.entries)
        for condition in order:
            child = available.get(condition)
            if child is None:
                continue
            target = _select(child, order)
            if target is not None:
                return target
        return None
    raise TypeError(f"Unexpected export node {node!r}")  # pragma: no cover - exhaustive


def _absolute(directory: Path, target: str) -> Path:
    if not target.startswith("./"):
        # Bare and root-relative targets are rooted at the package directory.
        target = "./" + target.lstrip("/")
    return Path(os.path.normpath(directory / target))


__all__ = [
    "ExportBlocked",
    "ExportConditions",
    "ExportFallbacks",
    "ExportNode",
    "ExportSubpaths",
    "ExportTarget",
    "default_precedence",
    "is_pattern",
    "parse_exports",
    "resolve_exports",
]
