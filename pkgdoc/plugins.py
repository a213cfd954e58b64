"""Registry of API link plugins and request-side translation."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Dict, List, Tuple

from .errors import UNKNOWN_LINK_PLUGIN, InvalidField, InvalidLinkPluginCombination
from .logging import Diagnostics

_TS_LINKS = "@typhonjs-typedoc/ts-lib-docs/typedoc/ts-links"

LINK_PLUGINS: Dict[str, str] = {
    "dom": f"{_TS_LINKS}/dom/2023",
    "es": f"{_TS_LINKS}/es/2023",
    "esm": f"{_TS_LINKS}/es/2023",
    "worker": f"{_TS_LINKS}/worker/2023",
}

EXCLUSIVE_GROUPS: Tuple[frozenset, ...] = (frozenset({"dom", "worker"}),)


def resolve_link_plugins(
    entries: Any, diagnostics: Diagnostics | None = None
) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """Validate link plugin names; return ``(names, backing_identifiers)``.

    Unknown names are reported and dropped. Names and identifiers are
    deduplicated in first-seen order.
    """
    diagnostics = diagnostics or Diagnostics()
    if isinstance(entries, (str, bytes)) or not isinstance(entries, Iterable):
        raise InvalidField("'link_plugins' must be an iterable list.", field="link_plugins")

    requested: Dict[str, None] = dict.fromkeys(str(entry) for entry in entries)

    for group in EXCLUSIVE_GROUPS:
        if group.issubset(requested):
            options = " or ".join(f"'{name}'" for name in sorted(group))
            raise InvalidLinkPluginCombination(
                f"API link error: You may only include one of {options}.",
                field="link_plugins",
            )

    names: List[str] = []
    identifiers: Dict[str, None] = {}
    for entry in requested:
        identifier = LINK_PLUGINS.get(entry)
        if identifier is None:
            diagnostics.warning(f"API link warning: Unknown API link '{entry}'.", code=UNKNOWN_LINK_PLUGIN)
            continue
        diagnostics.verbose(f"Adding API link plugin '{entry}': {identifier}")
        names.append(entry)
        identifiers.setdefault(identifier, None)

    return tuple(names), tuple(identifiers)


__all__ = ["EXCLUSIVE_GROUPS", "LINK_PLUGINS", "resolve_link_plugins"]
