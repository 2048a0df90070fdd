"""
Reporting and output formatting for discovered dependencies.

Provides console tables using the Rich library.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .dependency import Dependency


class DependencyReporter:
    """Formats and displays dependency discovery results."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_header(self, root: str) -> None:
        self.console.print(
            Panel(
                f"📦 Dependencies for {root}",
                title="[bold blue]dep-licenses[/bold blue]",
                border_style="blue",
            )
        )

    def print_dependencies(self, source_type: str, dependencies: List[Dependency]) -> None:
        """
        Print the records found by one source.

        Args:
            source_type: Ecosystem tag of the source
            dependencies: Records to display
        """
        table = Table(
            title=f"{source_type} ({len(dependencies)})",
            box=box.ROUNDED,
            title_style="bold cyan",
        )
        table.add_column("Name", style="bold")
        table.add_column("Version")
        table.add_column("Key", style="dim")
        table.add_column("Path", overflow="fold")

        for dependency in dependencies:
            path = dependency.path if dependency.exists else f"[red]{dependency.path}[/red]"
            table.add_row(dependency.name, dependency.version, dependency.key, path)

        self.console.print(table)
        self.console.print()

    def print_failures(self, failures: Dict[str, str]) -> None:
        """Print sources that could not be evaluated."""
        if not failures:
            return

        self.console.print("❌ [bold red]Failed sources:[/bold red]")
        for source_type, message in failures.items():
            self.console.print(f"  • [red]{source_type}[/red]: {escape(message)}")
        self.console.print()

    def print_sources(self, rows: Sequence[Tuple[str, bool, bool]]) -> None:
        """Print known source types with their configured and detected state."""
        table = Table(title="🔌 Sources", box=box.ROUNDED, title_style="bold cyan")
        table.add_column("Type", style="bold")
        table.add_column("Configured", justify="center")
        table.add_column("Detected", justify="center")

        for source_type, configured, detected in rows:
            table.add_row(
                source_type,
                "[green]yes[/green]" if configured else "[dim]no[/dim]",
                "[green]yes[/green]" if detected else "[dim]no[/dim]",
            )

        self.console.print(table)

    def print_summary(self, total: int, source_count: int, failure_count: int) -> None:
        style = "red" if failure_count else "green"
        self.console.print(
            f"Found {total} dependencies across {source_count} source(s)"
            + (f", {failure_count} failed" if failure_count else ""),
            style=style,
        )
