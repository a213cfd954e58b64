"""Combine per-manifest configurations for multi-package documentation runs."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Mapping, Sequence

from .entrypoints import EntryPointBuilder, is_dts_file
from .errors import InvalidField, ModuleNameCollision
from .models import GenerateConfig, freeze_mapping

# Settings every merged config must agree on.
_SHARED_FIELDS = ("output", "export_condition")


def merge_module_names(tables: Sequence[Mapping[str, str]]) -> Dict[str, str]:
    """Merge module name tables in order; conflicting names raise ``ModuleNameCollision``."""
    merged: Dict[str, str] = {}
    for table in tables:
        for identifier, name in table.items():
            existing = merged.get(identifier)
            if existing is not None and existing != name:
                raise ModuleNameCollision(identifier, existing, name)
            merged[identifier] = name
    return merged


def merge_configs(configs: Sequence[GenerateConfig]) -> GenerateConfig:
    """Union entry points and module names of ``configs`` in declaration order."""
    if not configs:
        raise ValueError("merge_configs requires at least one config")
    if len(configs) == 1:
        return configs[0]

    first = configs[0]
    for config in configs[1:]:
        for name in _SHARED_FIELDS:
            if getattr(config, name) != getattr(first, name):
                raise InvalidField(
                    f"Cannot merge packages with different '{name}': "
                    f"{getattr(first, name)!r} != {getattr(config, name)!r}",
                    field=name,
                )

    builder = EntryPointBuilder()
    for config in configs:
        for entry in config.entry_points:
            builder.add(entry)
    entries = builder.freeze()

    return replace(
        first,
        path=None,
        packages=tuple(config.path for config in configs if config.path is not None),
        entry_points=entries,
        module_names=freeze_mapping(merge_module_names([config.module_names for config in configs])),
        entry_points_dts=all(is_dts_file(entry) for entry in entries),
        from_package=all(config.from_package for config in configs),
    )


__all__ = ["merge_configs", "merge_module_names"]
