"""Command-line interface for codegraph: load a Go codebase and report its packages."""

from __future__ import annotations

import argparse
import logging
import sys

from codegraph import __version__
from codegraph.api import get_engine
from codegraph.config import ENGINES, Settings
from codegraph.core.directory import resolve_directory
from codegraph.core.errors import CodegraphError, ConfigError
from codegraph.core.loader import LoadOutcome, load
from codegraph.logging_utils import configure_logging

logger = logging.getLogger(__name__)


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports bad flags with exit status 1."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"Error: {message}\n")


def _settings(args: argparse.Namespace) -> Settings:
    settings = getattr(args, "settings", None)
    return settings if settings is not None else Settings.from_env()


def _print_outcome(outcome: LoadOutcome) -> None:
    """Print each package with its files, then the summary line."""
    for pkg in outcome.packages:
        print(f"\nPackage: {pkg.pkg_path}")
        print(f"  Name: {pkg.name}")
        print(f"  Files ({len(pkg.go_files)}):")
        for path in pkg.go_files:
            print(f"    - {path}")
        if pkg.errors:
            print(f"  Errors: {len(pkg.errors)}")

    print()
    if outcome.module_path is not None:
        print(f"Module: {outcome.module_path}")
    elif outcome.modules:
        print(f"Module: undetermined ({', '.join(outcome.modules)})")
    print(f"Loaded {len(outcome.packages)} packages, parsed {outcome.total_files} files")
    if outcome.error_count > 0:
        print(f"Encountered {outcome.error_count} parse errors", file=sys.stderr)


def cmd_parse(args: argparse.Namespace) -> int:
    """Load every package under the target directory and print them."""
    try:
        directory = resolve_directory(args.directory or "")
        if not args.output:
            raise ConfigError("--output flag requires a file path")
        engine = get_engine(args.engine, _settings(args))
        outcome = load(directory, args.include_tests, engine=engine)
    except CodegraphError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    _print_outcome(outcome)
    return 0


def cmd_tui(args: argparse.Namespace) -> int:
    """Launch the interactive TUI."""
    try:
        directory = resolve_directory(args.directory or "")
        engine = get_engine(args.engine, _settings(args))
    except CodegraphError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    from codegraph.tui.app import PackageBrowserApp

    app = PackageBrowserApp(directory=directory, include_tests=args.include_tests, engine=engine)
    app.run()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the codegraph CLI."""
    parser = _ArgumentParser(
        prog="codegraph",
        description="Load a Go codebase's packages from the command line.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # codegraph parse
    parse_parser = subparsers.add_parser(
        "parse",
        help="Load and list every package under a directory",
        description="Load all Go packages under DIRECTORY (default: current directory).",
    )
    parse_parser.add_argument(
        "directory",
        nargs="?",
        default="",
        help="Directory to load (default: current directory)",
    )
    parse_parser.add_argument(
        "-o",
        "--output",
        required=True,
        metavar="PATH",
        help="Output file path (required)",
    )
    parse_parser.add_argument(
        "--include-tests",
        action="store_true",
        help="Include _test.go files in parsing",
    )
    parse_parser.add_argument(
        "--engine",
        choices=ENGINES,
        default=None,
        help="Loading engine (default: $CODEGRAPH_ENGINE or 'source')",
    )
    parse_parser.set_defaults(func=cmd_parse)

    # codegraph tui
    tui_parser = subparsers.add_parser(
        "tui",
        help="Launch the interactive terminal UI",
        description="Browse the packages of a directory interactively.",
    )
    tui_parser.add_argument(
        "directory",
        nargs="?",
        default="",
        help="Directory to load (default: current directory)",
    )
    tui_parser.add_argument(
        "--include-tests",
        action="store_true",
        help="Include _test.go files in parsing",
    )
    tui_parser.add_argument(
        "--engine",
        choices=ENGINES,
        default=None,
        help="Loading engine (default: $CODEGRAPH_ENGINE or 'source')",
    )
    tui_parser.set_defaults(func=cmd_tui)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_usage(sys.stderr)
        return 1

    try:
        args.settings = Settings.from_env()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    configure_logging(logging.DEBUG if args.verbose else args.settings.log_level_number)
    logger.debug("running %s with %s", args.command, args.settings)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
