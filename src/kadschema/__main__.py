# src/kadschema/__main__.py
"""CLI tool for checking and describing schema modules.

Usage:
    python -m kadschema check <module> [--log-level LEVEL]
    python -m kadschema describe <module> [--json] [--log-level LEVEL]

Examples:
    # Validate every schema in a package; one line per diagnostic
    python -m kadschema check myapp.schemas

    # Show each schema's key shape and generated key type
    python -m kadschema describe myapp.schemas --json

Exit codes:
    0: All schemas compiled
    1: At least one validation diagnostic
    2: Only generation diagnostics
    3: The module or one of its submodules could not be imported
"""

from __future__ import annotations

import argparse
import importlib
import json
import logging
import sys
from types import ModuleType
from typing import NoReturn, Sequence

from kadschema.errors.render import Diagnostic, diagnostic_category, render_diagnostic
from kadschema.pipeline import compile_namespace
from kadschema.registry import SchemaRegistry
from kadschema.result import Failure, Result, Success


EXIT_OK = 0
EXIT_VALIDATION = 1
EXIT_GENERATION = 2
EXIT_IMPORT = 3


def _import(module_name: str) -> Result[ModuleType, str]:
    try:
        return Success(importlib.import_module(module_name))
    except Exception as exc:
        return Failure(f"{type(exc).__name__}: {exc}")


def _failure_exit_code(diagnostics: Sequence[Diagnostic]) -> int:
    categories = {diagnostic_category(diagnostic) for diagnostic in diagnostics}
    if "import" in categories:
        return EXIT_IMPORT
    return EXIT_VALIDATION if "validation" in categories else EXIT_GENERATION


def _compile(module_name: str) -> Result[SchemaRegistry, int]:
    match _import(module_name):
        case Failure(message):
            print(f"✗ Error: cannot import {module_name}: {message}", file=sys.stderr)
            return Failure(EXIT_IMPORT)
        case Success(module):
            pass

    match compile_namespace(module):
        case Success(registry):
            return Success(registry)
        case Failure(diagnostics):
            for diagnostic in diagnostics:
                print(render_diagnostic(diagnostic), file=sys.stderr)
            print(f"✗ {len(diagnostics)} diagnostic(s) in {module_name}", file=sys.stderr)
            return Failure(_failure_exit_code(diagnostics))


def cmd_check(module_name: str) -> int:
    """
    Compile every schema in a module.

    Returns:
        Exit code (see module docstring).
    """
    match _compile(module_name):
        case Success(registry):
            print(f"✓ {len(registry)} schema(s) compiled in {module_name}")
            return EXIT_OK
        case Failure(code):
            return code


def cmd_describe(module_name: str, as_json: bool = False) -> int:
    """Print each schema's qualified name, kind, key shape and key type."""
    match _compile(module_name):
        case Failure(code):
            return code
        case Success(registry):
            pass

    summaries = [artifacts.describe() for artifacts in registry]
    if as_json:
        print(json.dumps(summaries, indent=2))
        return EXIT_OK

    for summary in summaries:
        print(summary["schema"])
        print(f"  Kind: {summary['kind']}")
        print(f"  Key: {summary['key_shape']}")
        print(f"  Key type: {summary['key_type']}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kadschema",
        description="kadschema schema compiler CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # check command
    check_parser = subparsers.add_parser(
        "check", help="Validate and compile a schema module", parents=[common]
    )
    check_parser.add_argument("module", help="Importable module or package name")

    # describe command
    describe_parser = subparsers.add_parser(
        "describe", help="Describe compiled schemas", parents=[common]
    )
    describe_parser.add_argument("module", help="Importable module or package name")
    describe_parser.add_argument("--json", action="store_true", help="Emit JSON")

    return parser


def run(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, dispatch, and return the exit code."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))

    if args.command == "check":
        return cmd_check(args.module)
    elif args.command == "describe":
        return cmd_describe(args.module, args.json)
    raise AssertionError(f"Unhandled command: {args.command!r}")


def main(argv: Sequence[str] | None = None) -> NoReturn:
    """Main CLI entry point."""
    sys.exit(run(argv))


if __name__ == "__main__":
    main()
