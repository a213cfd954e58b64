"""Tests for link plugin resolution."""

from __future__ import annotations

import pytest

from pkgdoc.errors import UNKNOWN_LINK_PLUGIN, InvalidField, InvalidLinkPluginCombination
from pkgdoc.logging import Diagnostics
from pkgdoc.plugins import LINK_PLUGINS, resolve_link_plugins


def test_known_plugins_are_translated_and_deduplicated() -> None:
    names, identifiers = resolve_link_plugins(["dom", "es", "dom", "esm"])

    assert names == ("dom", "es", "esm")
    assert identifiers == (LINK_PLUGINS["dom"], LINK_PLUGINS["es"])


def test_unknown_plugins_warn_and_are_dropped() -> None:
    diagnostics = Diagnostics()

    names, identifiers = resolve_link_plugins(["worker", "jquery"], diagnostics)

    assert names == ("worker",)
    assert identifiers == (LINK_PLUGINS["worker"],)
    assert diagnostics.codes() == [UNKNOWN_LINK_PLUGIN]


@pytest.mark.parametrize("entries", [["dom", "worker"], ("worker", "es", "dom")])
def test_dom_and_worker_are_exclusive(entries) -> None:
    with pytest.raises(InvalidLinkPluginCombination):
        resolve_link_plugins(entries)


@pytest.mark.parametrize("entries", ["dom", 3])
def test_non_iterable_entries_rejected(entries) -> None:
    with pytest.raises(InvalidField) as excinfo:
        resolve_link_plugins(entries)

    assert excinfo.value.field == "link_plugins"
