"""Rich-powered console output for LineageGraph."""

from __future__ import annotations

from rich.console import Console as RichConsole
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from lineagegraph import __version__
from lineagegraph.context.models import ContextDocument


class Console:
    """Terminal output for LineageGraph using Rich."""

    def __init__(self, stderr: bool = False) -> None:
        self.console = RichConsole(stderr=stderr)

    def banner(self) -> None:
        self.console.print(
            Panel(
                f"[bold cyan]LineageGraph[/bold cyan] [dim]v{__version__}[/dim]\n"
                "[dim]Data lineage reports from the code your routine reaches[/dim]",
                border_style="cyan",
                padding=(1, 2),
            )
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {escape(message)}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {escape(message)}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]i[/blue] {escape(message)}")

    def markdown(self, text: str) -> None:
        """Render markdown text."""
        self.console.print(Markdown(text))

    def code(self, text: str, language: str = "java") -> None:
        """Render syntax-highlighted code."""
        self.console.print(Syntax(text, language, theme="monokai", line_numbers=True))

    def indexing_progress(self) -> Progress:
        """Create a progress bar for parsing."""
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=self.console,
        )

    def show_stats(self, stats: dict) -> None:
        """Display call graph statistics in a table."""
        table = Table(title="Call Graph Statistics", border_style="cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Count", justify="right", style="cyan")

        table.add_row("Files", str(stats.get("files", 0)))
        table.add_row("Routines", str(stats.get("routines", 0)))
        table.add_row("Call Edges", str(stats.get("call_edges", 0)))
        table.add_row("References", str(stats.get("references", 0)))
        table.add_row("Unresolved Calls", str(stats.get("unresolved_calls", 0)))

        self.console.print(table)

    def show_context(self, document: ContextDocument) -> None:
        """Display the collected routines as a call tree."""
        tree = Tree(f"[bold cyan]{document.root_id}[/bold cyan]")
        depth_nodes: dict[int, Tree] = {0: tree}

        for entry in document.entries[1:]:
            parent = depth_nodes.get(entry.depth - 1, tree)
            node = parent.add(
                f"[bold]{entry.qualified_name}[/bold] "
                f"at [cyan]{entry.file_path}:{entry.line_start}[/cyan] "
                f"[dim]refs={len(entry.references)}[/dim]"
            )
            depth_nodes[entry.depth] = node

        self.console.print(tree)
        self.console.print(
            f"[dim]{len(document.entries)} routine(s), "
            f"{document.reference_count} reference line(s)[/dim]"
        )

    def show_report(self, report: str) -> None:
        self.console.print(
            Panel(Markdown(report), title="[bold green]Lineage Report[/bold green]", border_style="green")
        )
