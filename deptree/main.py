"""Main CLI entry point for deptree.

Provides commands: scan, resolve
"""

import argparse
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from deptree.cli.resolve import resolve_command
from deptree.cli.scan import scan_command
from deptree.config import DEFAULT_REGISTRY
from deptree.export.json import OUTPUT_FORMATS

logger = logging.getLogger("deptree.cli")


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Setup logging configuration with Rich integration.

    Args:
        verbose: Enable verbose logging.
        console: Rich Console instance for coordinated output (optional).
    """
    if verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        log_time_format="[%H:%M:%S]",
    )

    logging.basicConfig(
        level=level,
        format="[%(name)s] [%(levelname)s] %(message)s",
        handlers=[handler],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="deptree",
        description="Deptree - npm Dependency Tree Scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Scan command
    scan_parser = subparsers.add_parser(
        "scan",
        help="Scan a package, package.json or lockfile and print its dependency tree",
    )
    scan_parser.add_argument(
        "package",
        nargs="?",
        help="Package name, optionally with a spec (e.g. express@^4)",
    )
    scan_parser.add_argument("-n", "--name", help="Package name")
    scan_parser.add_argument("-V", "--version", dest="pkg_version", help="Package version or range")
    scan_parser.add_argument(
        "-d",
        "--development",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show development dependencies (default: on)",
    )
    scan_parser.add_argument(
        "-o",
        "--optional",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show optional dependencies (default: off)",
    )
    scan_parser.add_argument(
        "-p",
        "--peer",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show peer dependencies (default: off)",
    )
    scan_parser.add_argument(
        "-r",
        "--registry",
        help=f"Alternative registry url (default: {DEFAULT_REGISTRY})",
    )
    scan_parser.add_argument("-f", "--file", help="Write output to this file instead of stdout")
    scan_parser.add_argument(
        "--depth",
        type=int,
        help="Maximum levels expanded below the root (default: 1, 0 = unlimited)",
    )
    scan_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    scan_parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default="default",
        help="Output format (default: nested tree)",
    )
    inputs = scan_parser.add_mutually_exclusive_group()
    inputs.add_argument("--package", dest="package_json", help="Input package.json path")
    inputs.add_argument("--yarn", help="Input yarn.lock path")
    inputs.add_argument("--lock", help="Input package-lock.json path")
    scan_parser.add_argument(
        "-c",
        "--config",
        help=(
            "Optional scan configuration. Can be a path to a TOML/JSON "
            "file or an inline TOML/JSON string. Command-line options win."
        ),
    )
    scan_parser.add_argument(
        "--cache-dir",
        help="Directory for cached package metadata (disabled when omitted)",
    )
    scan_parser.add_argument(
        "-w",
        "--workers",
        type=int,
        help="Maximum concurrent metadata fetches per level (default: 8)",
    )
    scan_parser.set_defaults(print_help=scan_parser.print_help)

    # Resolve command
    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Resolve a range or dist-tag to a concrete published version",
    )
    resolve_parser.add_argument("package", help="Package name, optionally name@range")
    resolve_parser.add_argument("range", nargs="?", help="Version range or dist-tag")
    resolve_parser.add_argument("-r", "--registry", help="Alternative registry url")
    resolve_parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point.

    Returns:
        int: Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(getattr(args, "debug", False))

    if args.command == "scan":
        if not (args.package or args.name or args.package_json or args.yarn or args.lock):
            args.print_help()
            return 1
        return scan_command(args)
    elif args.command == "resolve":
        return resolve_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
