"""
Command-line interface for debarrel

Rewires imports that go through barrel files and deletes the barrels that
are no longer needed. Runs as a dry run unless ``--write`` is given.
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from rich.text import Text

from debarrel import __version__
from debarrel.api import Debarrel
from debarrel.cli.reporting import print_report
from debarrel.cli.rich_output import get_rich_output, set_rich_enabled
from debarrel.config import load_config
from debarrel.errors import ConfigurationError
from debarrel.models import DebarrelOptions, ProgressEvent, ProgressType

logger = logging.getLogger(__name__)

EXAMPLES = """
Examples:
  debarrel
  debarrel --cwd ./src
  debarrel --only ./src/utils/index.ts
  debarrel --skip ./public-api.ts
  debarrel --barrel looks/like/barrel.ts
  debarrel --files "src/**/*.ts" --files "lib/**/*.ts"
  debarrel --ext .js
  debarrel --write
  debarrel --check
  debarrel --unsafe-namespace
"""


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="debarrel",
        description="debarrel - Remove barrel files and rewire imports",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--cwd", "-c", default=".", help='Working directory (default: ".")')
    parser.add_argument(
        "--only",
        "-o",
        action="append",
        default=[],
        metavar="FILE",
        help="Process only the selected barrel file (can be repeated)",
    )
    parser.add_argument(
        "--skip",
        "-s",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Barrel files to skip (glob, can be repeated)",
    )
    parser.add_argument(
        "--barrel",
        "-b",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Extra files to treat as barrels (glob, can be repeated)",
    )
    parser.add_argument(
        "--files",
        "-f",
        action="append",
        default=None,
        metavar="PATTERN",
        help="Set file coverage (glob, can be repeated, default: use tsconfig.json)",
    )
    parser.add_argument(
        "--ext",
        "-e",
        default=None,
        help='Extension for rewritten imports, "" to drop it (default: auto-detect)',
    )
    parser.add_argument(
        "--write",
        "-w",
        action="store_true",
        help="Write changes to disk (default: dry run)",
    )
    parser.add_argument(
        "--check",
        "--ci",
        dest="check",
        action="store_true",
        help="Check mode for CI; exit with status 1 if there are changes",
    )
    parser.add_argument(
        "--unsafe-namespace",
        action="store_true",
        help="Rewrite namespace imports of multi-module barrels; may include types and cause identifier collisions",
    )
    parser.add_argument(
        "--organize-imports",
        action="store_true",
        help="Merge duplicate imports of the same module after rewriting",
    )
    parser.add_argument("--config", type=str, help="Path to configuration file")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON on stdout",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output and debug logging",
    )
    parser.add_argument(
        "--no-rich",
        action="store_true",
        help="Disable rich terminal output (use plain text)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_options(args: argparse.Namespace, progress=None) -> DebarrelOptions:
    """Translate parsed arguments into run options."""
    ext = args.ext
    if ext and not ext.startswith("."):
        ext = "." + ext
    return DebarrelOptions(
        cwd=args.cwd,
        only=list(args.only),
        files=list(args.files) if args.files is not None else None,
        skip=list(args.skip),
        barrel=list(args.barrel),
        ext=ext,
        write=args.write,
        check=args.check,
        unsafe_namespace=args.unsafe_namespace,
        organize_imports=args.organize_imports,
        progress=progress,
    )


def make_progress_handler(base: str):
    """Progress callback printing status lines to stderr."""
    output = get_rich_output()

    def rel(path: Optional[str]) -> str:
        return os.path.relpath(path, base) if path else ""

    def handle(event: ProgressEvent) -> None:
        if event.type is ProgressType.FILES:
            output.print_success(f"Found {event.count} project files")
            output.print_success("Processing barrel files and scanning for consumers...")
        elif event.type is ProgressType.BARREL:
            output.console.print(Text(f"    {rel(event.path)}", style="dim" if output.use_rich else ""))
        elif event.type is ProgressType.REWRITING:
            output.print_success("Scan complete, rewiring imports and deleting barrels...")
        elif event.type is ProgressType.DONE:
            output.print_success("Process completed:")

    return handle


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    set_rich_enabled(not args.no_rich and not args.json, stderr=True)
    output = get_rich_output()

    base = os.path.realpath(os.path.abspath(args.cwd))
    progress = None if args.json else make_progress_handler(base)

    try:
        config = load_config(args.config, search_dir=base)
    except ConfigurationError as e:
        output.print_error(str(e))
        return 1

    options = build_options(args, progress)
    if not args.json:
        if options.check:
            output.print_info("Checking")
        elif not options.write:
            output.print_info("Running in dry-run mode (use --write to apply changes)")

    try:
        result = Debarrel(config).run(options)
    except ConfigurationError as e:
        output.print_error(str(e))
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_report(result, options, base, rich=not args.no_rich)

    if options.check and result.has_changes:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
