"""CLI entrypoint for pkgdoc."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import ConfigError
from .errors import PkgDocError
from .logging import configure_logging
from .orchestrator import Orchestrator


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pkgdoc",
        description=(
            "Resolve documentation entry points from 'package.json' export conditions. "
            "By default 'package.json' is analyzed for export conditions with 'types' defined. "
            "You may otherwise specify a file or a directory whose Typescript declarations are used."
        ),
    )
    parser.add_argument(
        "-f",
        "--file",
        help="Provide a file path to include a Typescript declaration for documentation generation.",
    )
    parser.add_argument(
        "-p",
        "--path",
        help="Provide a directory path to include all Typescript declarations for documentation generation.",
    )
    parser.add_argument(
        "-l",
        "--link",
        help="Enable API linking; provide a comma separated string including 'dom', 'es', and 'worker'.",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Provide a directory path for generated documentation; default is 'docs'.",
    )
    parser.add_argument(
        "-e",
        "--export-condition",
        help="Export condition to resolve from 'package.json' exports; default is 'types'.",
    )
    parser.add_argument("--tsconfig", help="Path to a tsconfig file supplying compiler options.")
    parser.add_argument("--typedoc", help="Path to a typedoc.json file with generator options.")
    parser.add_argument("--package-name", help="Display name override for the package module.")
    parser.add_argument(
        "--package",
        action="append",
        dest="packages",
        help="Package directory or 'package.json' to document together; repeatable.",
    )
    parser.add_argument(
        "--workspaces",
        action="store_true",
        default=None,
        help="Document every member package listed in the root 'package.json' workspaces.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Drop 'package.json' entries that do not reference a declaration file.",
    )
    parser.add_argument(
        "--dmt-flat",
        action="store_true",
        help="[Default Modern Theme] Package / module paths are flattened.",
    )
    parser.add_argument("--config", help="Path to a .pkgdoc.yml file (defaults to the current directory).")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Verbosely log configuration setup.",
    )
    return parser


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    links: Optional[List[str]] = None
    if args.link is not None:
        links = [item.strip() for item in args.link.split(",") if item.strip()]
    return {
        "path": args.file,
        "dir": args.path,
        "packages": args.packages,
        "workspaces": args.workspaces,
        "output": args.output,
        "export_condition": args.export_condition,
        "tsconfig_path": args.tsconfig,
        "typedoc_path": args.typedoc,
        "package_name": args.package_name,
        "link_plugins": links,
        "nav_style": "flat" if args.dmt_flat else None,
        "strict_declarations": args.strict,
    }


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint; prints the generator payload as JSON."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    orchestrator = Orchestrator()
    try:
        request = orchestrator.assemble_request(
            config_path=Path(args.config) if args.config else None,
            overrides=_overrides(args),
        )
        config = orchestrator.run(request)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")
    except PkgDocError:
        # Already reported through the diagnostics channel.
        parser.exit(1, "pkgdoc failed; run with --verbose for more details.\n")

    print(json.dumps(config.to_payload(), indent=2))


if __name__ == "__main__":
    main(sys.argv[1:])
