"""TypeScript compiler option loading and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Set, Tuple, Union

import json5

from .errors import InvalidField

DEFAULT_COMPILER_OPTIONS: Dict[str, Any] = {
    "module": "esnext",
    "moduleResolution": "bundler",
    "noEmit": True,
    "target": "esnext",
}

_TARGETS = (
    "es3", "es5", "es6", "es2015", "es2016", "es2017", "es2018", "es2019",
    "es2020", "es2021", "es2022", "es2023", "es2024", "esnext",
)
_MODULES = (
    "none", "commonjs", "amd", "system", "umd", "es6", "es2015", "es2020",
    "es2022", "esnext", "node16", "node18", "node20", "nodenext", "preserve",
)

OptionKind = Union[str, Tuple[str, ...]]

# Options checked for type and allowed values. Names outside this table are
# passed through untouched; the generator's own compiler reports on them.
COMPILER_OPTION_KINDS: Dict[str, OptionKind] = {
    "allowJs": "boolean",
    "allowSyntheticDefaultImports": "boolean",
    "baseUrl": "string",
    "checkJs": "boolean",
    "declaration": "boolean",
    "declarationDir": "string",
    "declarationMap": "boolean",
    "emitDeclarationOnly": "boolean",
    "esModuleInterop": "boolean",
    "experimentalDecorators": "boolean",
    "forceConsistentCasingInFileNames": "boolean",
    "isolatedModules": "boolean",
    "jsx": ("preserve", "react", "react-native", "react-jsx", "react-jsxdev"),
    "lib": "list",
    "module": _MODULES,
    "moduleDetection": ("auto", "legacy", "force"),
    "moduleResolution": ("classic", "node", "node10", "node16", "nodenext", "bundler"),
    "newLine": ("crlf", "lf"),
    "noEmit": "boolean",
    "noImplicitAny": "boolean",
    "outDir": "string",
    "paths": "object",
    "resolveJsonModule": "boolean",
    "rootDir": "string",
    "skipLibCheck": "boolean",
    "sourceMap": "boolean",
    "strict": "boolean",
    "strictNullChecks": "boolean",
    "target": _TARGETS,
    "typeRoots": "list",
    "types": "list",
    "verbatimModuleSyntax": "boolean",
}


class CompilerOptionsValidator(Protocol):
    """Validates raw compiler options; returns normalized options and diagnostics."""

    def validate(self, options: Mapping[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
        """Return ``(options, messages)``; any message means the options are invalid."""


class BuiltinCompilerOptionsValidator:
    """Checks value types and enum choices of known options the way tsc reports them.

    Options missing from ``kinds`` are kept as given unless ``reject_unknown``
    is set, in which case each one is reported as an unknown compiler option.
    """

    def __init__(self, kinds: Mapping[str, OptionKind] | None = None, reject_unknown: bool = False) -> None:
        self.kinds = dict(kinds or COMPILER_OPTION_KINDS)
        self.reject_unknown = reject_unknown

    def validate(self, options: Mapping[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
        normalized: Dict[str, Any] = {}
        messages: List[str] = []
        for name, value in options.items():
            kind = self.kinds.get(name)
            if kind is None:
                if self.reject_unknown:
                    messages.append(f"Unknown compiler option '{name}'.")
                else:
                    normalized[name] = value
                continue
            if isinstance(kind, tuple):
                lowered = value.lower() if isinstance(value, str) else None
                if lowered not in kind:
                    choices = ", ".join(f"'{choice}'" for choice in kind)
                    messages.append(f"Argument for '--{name}' option must be: {choices}.")
                    continue
                normalized[name] = lowered
            elif not _matches(kind, value):
                messages.append(f"Compiler option '{name}' requires a value of type {kind}.")
            else:
                normalized[name] = value
        return normalized, messages


def load_tsconfig(path: Path) -> Dict[str, Any]:
    """Return the ``compilerOptions`` of a tsconfig file, following ``extends``.

    tsconfig files are JSONC, so comments and trailing commas are accepted.
    Options of the extending file override those it inherits.
    """
    return _load_tsconfig(Path(path).resolve(), set())


def _load_tsconfig(path: Path, visited: Set[Path]) -> Dict[str, Any]:
    if path in visited:
        raise InvalidField(f"Circular 'extends' in tsconfig: {path.as_posix()}", field="tsconfig_path")
    visited.add(path)
    try:
        data = json5.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise InvalidField(f"Failed to parse {path.as_posix()}: {exc}", field="tsconfig_path") from exc
    if not isinstance(data, dict):
        raise InvalidField(f"'tsconfig_path' must contain an object: {path.as_posix()}", field="tsconfig_path")
    options = data.get("compilerOptions", {})
    if not isinstance(options, dict):
        raise InvalidField(
            f"'compilerOptions' in {path.as_posix()} must be an object.", field="tsconfig_path"
        )

    extends = data.get("extends")
    if extends is None:
        bases: List[Any] = []
    elif isinstance(extends, list):
        bases = extends
    else:
        bases = [extends]

    merged: Dict[str, Any] = {}
    for base in bases:
        if not isinstance(base, str):
            raise InvalidField(f"'extends' in {path.as_posix()} must be a string.", field="tsconfig_path")
        merged.update(_load_tsconfig(_resolve_extends(base, path), visited))
    merged.update(options)
    return merged


def _resolve_extends(spec: str, origin: Path) -> Path:
    if spec.startswith(".") or Path(spec).is_absolute():
        candidate = (origin.parent / spec).resolve()
        if not candidate.is_file() and candidate.suffix != ".json":
            candidate = candidate.with_name(candidate.name + ".json")
        found: Optional[Path] = candidate if candidate.is_file() else None
    else:
        found = _find_in_node_modules(spec, origin.parent)
    if found is None:
        raise InvalidField(
            f"Cannot find base tsconfig '{spec}' extended by {origin.as_posix()}.", field="tsconfig_path"
        )
    return found


def _find_in_node_modules(spec: str, start: Path) -> Optional[Path]:
    for directory in (start, *start.parents):
        base = directory / "node_modules" / spec
        for candidate in (base, base.with_name(base.name + ".json"), base / "tsconfig.json"):
            if candidate.is_file():
                return candidate.resolve()
    return None


def _matches(kind: str, value: Any) -> bool:
    if kind == "boolean":
        return isinstance(value, bool)
    if kind == "string":
        return isinstance(value, str)
    if kind == "list":
        return isinstance(value, list) and all(isinstance(item, str) for item in value)
    if kind == "object":
        return isinstance(value, dict)
    return False


__all__ = [
    "BuiltinCompilerOptionsValidator",
    "COMPILER_OPTION_KINDS",
    "CompilerOptionsValidator",
    "DEFAULT_COMPILER_OPTIONS",
    "load_tsconfig",
]
