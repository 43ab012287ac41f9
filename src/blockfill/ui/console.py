"""Rich-powered console output for Blockfill."""

from __future__ import annotations

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table

from blockfill import __version__
from blockfill.selector.models import SelectionResult, StopReason


class Console:
    """Terminal output for Blockfill using Rich."""

    def __init__(self) -> None:
        self.console = RichConsole()

    def banner(self) -> None:
        """Show the Blockfill banner."""
        self.console.print(
            Panel(
                f"[bold cyan]Blockfill[/bold cyan] [dim]v{__version__}[/dim]\n"
                "[dim]Fee-maximizing block templates under a time budget[/dim]",
                border_style="cyan",
                padding=(1, 2),
            )
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]i[/blue] {message}")

    def show_result(self, result: SelectionResult) -> None:
        """Display the selected transactions and run totals."""
        table = Table(title="Selected Transactions", border_style="cyan")
        table.add_column("#", justify="right", style="dim")
        table.add_column("ID", style="bold")
        table.add_column("Size", justify="right")
        table.add_column("Fee", justify="right", style="cyan")
        table.add_column("Fee/Size", justify="right")

        for i, tx in enumerate(result.items, 1):
            table.add_row(str(i), tx.id, str(tx.size), str(tx.fee), f"{tx.density:.3f}")

        self.console.print(table)

        stop_color = "yellow" if result.stopped_by is StopReason.DEADLINE else "green"
        if result.stopped_by is StopReason.MALFORMED:
            stop_color = "red"
        s = result.stats
        self.console.print(
            Panel(
                f"[bold]Transactions:[/bold] {result.count}\n"
                f"[bold]Size:[/bold] {result.used_capacity:,} / {result.capacity:,} "
                f"({result.fill_pct:.0f}%)\n"
                f"[bold]Fee:[/bold] [cyan]{result.total_fee:,}[/cyan]\n"
                f"[bold]Time:[/bold] {result.elapsed_ms:.1f}ms of {result.time_budget_ms}ms "
                f"([{stop_color}]{result.stopped_by.value}[/{stop_color}])\n"
                f"[dim]offered {s.offered}, admitted {s.admitted}, replaced {s.replaced}, "
                f"rejected {s.rejected}, invalid {s.invalid}, evicted {s.evicted}[/dim]",
                title="[bold]Block Template[/bold]",
                border_style=stop_color,
            )
        )

