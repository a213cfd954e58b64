"""Error kinds raised while resolving entry points and validating configuration."""

from __future__ import annotations

from typing import Iterable, List, Optional


class PkgDocError(RuntimeError):
    """Base class for failures that abort a generation run."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class ManifestNotFound(PkgDocError):
    """Raised when no package.json exists on the search path."""


class NoEntryPoints(PkgDocError):
    """Raised when resolution leaves no entry points to document."""


class InvalidField(PkgDocError):
    """Raised when a request field has the wrong shape or type."""


class InvalidCompilerOptions(PkgDocError):
    """Raised when compiler option validation reports diagnostics."""

    def __init__(self, messages: Iterable[str]) -> None:
        self.messages: List[str] = list(messages)
        super().__init__(
            "Invalid compiler options:\n" + "\n".join(self.messages),
            field="compiler_options",
        )


class InvalidLinkPluginCombination(PkgDocError):
    """Raised when mutually exclusive link plugins are requested together."""


class ModuleNameCollision(PkgDocError):
    """Raised when two manifests assign different display names to one module."""

    def __init__(self, identifier: str, existing: str, incoming: str) -> None:
        super().__init__(
            f"Module name collision for '{identifier}': '{existing}' != '{incoming}'",
            field="module_names",
        )
        self.identifier = identifier
        self.existing = existing
        self.incoming = incoming


# Warning-level diagnostic codes; never raised.
INVALID_DECLARATION_FILE = "InvalidDeclarationFile"
UNKNOWN_LINK_PLUGIN = "UnknownLinkPlugin"


__all__ = [
    "INVALID_DECLARATION_FILE",
    "InvalidCompilerOptions",
    "InvalidField",
    "InvalidLinkPluginCombination",
    "ManifestNotFound",
    "ModuleNameCollision",
    "NoEntryPoints",
    "PkgDocError",
    "UNKNOWN_LINK_PLUGIN",
]
