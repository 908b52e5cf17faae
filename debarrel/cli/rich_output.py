"""
Rich terminal output utilities for the debarrel CLI.

Provides status lines, trees and the colored example diff.
With rich output disabled the same calls print plain, uncolored text.
"""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.text import Text
from rich.tree import Tree


class RichOutputManager:
    """Manages rich terminal output with a plain text mode."""

    def __init__(self, use_rich: bool = True, stderr: bool = False):
        """Initialize the output manager."""
        self.use_rich = use_rich
        if use_rich:
            self.console = Console(stderr=stderr)
        else:
            self.console = Console(stderr=stderr, no_color=True, highlight=False, markup=False, emoji=False)

    def print_success(self, message: str) -> None:
        """Print a success message."""
        if self.use_rich:
            self.console.print(f"[green]✓[/green] {escape(message)}")
        else:
            self.console.print(f"✓ {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        if self.use_rich:
            self.console.print(f"[yellow]⚠[/yellow] {escape(message)}")
        else:
            self.console.print(f"⚠ {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        if self.use_rich:
            self.console.print(f"[red]✗[/red] {escape(message)}")
        else:
            self.console.print(f"✗ {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        if self.use_rich:
            self.console.print(f"[blue]ℹ[/blue] {escape(message)}")
        else:
            self.console.print(f"ℹ {message}")

    def print_status(self, label: str, path: str, style: str) -> None:
        """Print ``label: path`` with the label colored, e.g. ``modified: src/a.ts``."""
        if self.use_rich:
            self.console.print(f"[{style}]{label}:[/{style}] {escape(path)}")
        else:
            self.console.print(f"{label}: {path}")

    def create_tree(self, title: str) -> Tree:
        """Create a tree structure."""
        return Tree(Text(title))

    def add_tree_node(self, tree: Tree, label: str, parent: Optional[Tree] = None) -> Tree:
        """Add a node to the tree."""
        return (parent or tree).add(Text(label))

    def print_tree(self, tree: Tree) -> None:
        """Print the tree."""
        self.console.print(tree)

    def print_diff(self, diff: str) -> None:
        """Print ``-``/``+`` lines, removed lines red and added lines green."""
        for line in diff.splitlines():
            if self.use_rich and line.startswith("-"):
                self.console.print(Text(line, style="red"))
            elif self.use_rich and line.startswith("+"):
                self.console.print(Text(line, style="green"))
            else:
                self.console.print(Text(line))


# Global instance
rich_output = RichOutputManager()


def set_rich_enabled(enabled: bool, stderr: bool = False) -> None:
    """Enable or disable rich output globally."""
    global rich_output
    rich_output = RichOutputManager(use_rich=enabled, stderr=stderr)


def get_rich_output() -> RichOutputManager:
    """Get the global rich output manager."""
    return rich_output
