"""Pipeline orchestration: request assembly, validation and generator hand-off."""

from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from .compiler import CompilerOptionsValidator
from .config import CONFIG_FILENAME, load_request, validate_config
from .logging import Diagnostics, get_logger
from .models import GenerateConfig, GenerateRequest

Generator = Callable[[Dict[str, Any]], Any]

# Mutually exclusive entry-point sources; an override of one replaces the others.
SOURCE_FIELDS = {"path": None, "dir": None, "packages": None, "workspaces": False}


class Orchestrator:
    """Coordinates one generation run from request sources to the generator payload."""

    def __init__(
        self,
        generator: Optional[Generator] = None,
        compiler_validator: CompilerOptionsValidator | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self.generator = generator
        self.compiler_validator = compiler_validator
        self.logger = get_logger("orchestrator")
        self.diagnostics = diagnostics or Diagnostics(self.logger)

    def assemble_request(
        self,
        cwd: Path | None = None,
        config_path: Path | None = None,
        overrides: Mapping[str, Any] | None = None,
    ) -> GenerateRequest:
        """Merge ``.pkgdoc.yml`` values with caller overrides (non-``None`` values win).

        An overriding entry-point source replaces every source named in the file.
        """
        root = Path(cwd or os.getcwd())
        request = load_request(config_path or root / CONFIG_FILENAME)
        changes = {key: value for key, value in (overrides or {}).items() if value is not None}
        if any(key in changes for key in SOURCE_FIELDS):
            for key, empty in SOURCE_FIELDS.items():
                changes.setdefault(key, empty)
        return replace(request, **changes)

    def build(self, request: GenerateRequest, cwd: Path | None = None) -> GenerateConfig:
        """Validate ``request`` into a GenerateConfig."""
        config = validate_config(
            request,
            cwd=cwd,
            diagnostics=self.diagnostics,
            compiler_validator=self.compiler_validator,
        )
        self.logger.debug(
            "Resolved %d entry point(s) (fromPackage=%s, entryPointsDTS=%s)",
            len(config.entry_points),
            config.from_package,
            config.entry_points_dts,
        )
        return config

    def run(self, request: GenerateRequest, cwd: Path | None = None) -> GenerateConfig:
        """Build the configuration and hand its payload to the generator, if any."""
        config = self.build(request, cwd=cwd)
        if self.generator is not None:
            self.generator(config.to_payload())
        return config


__all__ = ["Generator", "Orchestrator", "SOURCE_FIELDS"]
