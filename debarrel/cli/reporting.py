"""
Human-readable rendering of a RunResult.
"""

import os

from rich.text import Text

from debarrel.cli.rich_output import RichOutputManager, get_rich_output
from debarrel.models import DebarrelOptions, PreservationReason, RunResult
from debarrel.orchestration.reporter import group_preserved, group_untraceable

REASON_HEADINGS = {
    PreservationReason.SKIP: "via --skip or package.json#exports",
    PreservationReason.NAMESPACE_IMPORT: "has namespace imports",
    PreservationReason.NON_TS_IMPORT: "imports rewritten except for non-JS/TS files",
    PreservationReason.DYNAMIC_IMPORT: "rewiring dynamic imports is not supported",
}


def print_report(result: RunResult, options: DebarrelOptions, base: str, rich: bool = True) -> None:
    """
    Print the report of a run.

    Notices (preserved barrels, untraceable imports, errors) go to stderr
    through the global output manager; status lines, the example diff and
    the summary go to stdout.
    """
    notices = get_rich_output()
    out = RichOutputManager(use_rich=rich)

    def rel(path: str) -> str:
        return os.path.relpath(path, base) if path.startswith(base) else path

    for path in result.modified:
        out.print_status("modified", rel(path), "yellow")
    for path in result.deleted:
        out.print_status("deleted", rel(path), "red")

    for reason, barrels in group_preserved(result.preserved).items():
        heading = REASON_HEADINGS[reason]
        if reason is PreservationReason.NAMESPACE_IMPORT and not options.unsafe_namespace:
            heading += ", use --unsafe-namespace to rewrite"
        tree = notices.create_tree(f"Preserved barrel files ({heading}):")
        for barrel in barrels:
            node = notices.add_tree_node(tree, rel(barrel.path))
            if reason is not PreservationReason.SKIP:
                for consumer in barrel.consumers:
                    notices.add_tree_node(tree, rel(consumer), parent=node)
        notices.console.print()
        notices.print_tree(tree)

    untraceable = group_untraceable(result.untraceable_imports)
    if untraceable:
        notices.console.print()
        notices.print_warning("Untraceable imports (export not found in barrel or source file):")
        tree = notices.create_tree("Barrels")
        for barrel_path, consumers in untraceable.items():
            node = notices.add_tree_node(tree, rel(barrel_path))
            for consumer_path, names in consumers.items():
                notices.add_tree_node(tree, f"{rel(consumer_path)}: {', '.join(names)}", parent=node)
        notices.print_tree(tree)

    if result.errors:
        notices.console.print()
        notices.print_error(f"Encountered {len(result.errors)} error(s) during processing:")
        for error in result.errors:
            notices.console.print(Text(f"  - {rel(error.path)}: {error.message}"))

    if result.example_diff and options.dry_run:
        out.console.print()
        out.print_info("Largest rewire diff:")
        out.print_diff(result.example_diff)

    out.console.print()
    out.print_success("Summary:")
    out.console.print(f"  Modified {len(result.modified)} file(s)")
    out.console.print(f"  Deleted {len(result.deleted)} barrel file(s)")

    if options.check and result.has_changes:
        notices.console.print()
        notices.print_error("Check failed: changes would be made.")
    elif not options.write and not options.check and result.has_changes:
        notices.console.print()
        notices.print_info("Run with --write to apply these changes.")
