# codesync/cli/ui.py
"""
Shared UI helpers for CLI commands.

Usage:
    from codesync.cli.ui import ui, console

    ui.header("Sync", "acme/api")
    ui.success("Done!")
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

console = Console()


class UI:
    """Consistent styling for every command."""

    def print(self, msg: str, style: str = "") -> None:
        if style:
            console.print(f"[{style}]{msg}[/{style}]")
        else:
            console.print(msg)

    def header(self, title: str, subtitle: str = "") -> None:
        content = f"[bold]{title}[/bold]"
        if subtitle:
            content += f"\n[dim]{subtitle}[/dim]"
        console.print(Panel.fit(content, border_style="blue"))

    def section(self, title: str) -> None:
        console.print(f"\n[bold cyan]{title}[/bold cyan]")

    def success(self, msg: str) -> None:
        console.print(f"[green]✓[/green] {msg}")

    def error(self, msg: str) -> None:
        console.print(f"[red]✗[/red] {msg}")

    def warning(self, msg: str, detail: str = "") -> None:
        detail_str = f" [dim]({detail})[/dim]" if detail else ""
        console.print(f"[yellow]⚠[/yellow] {msg}{detail_str}")

    def info(self, msg: str) -> None:
        console.print(f"[dim]{msg}[/dim]")

    def status(self, name: str, ok: bool, detail: str = "") -> None:
        icon, color = ("✓", "green") if ok else ("✗", "red")
        detail_str = f" [dim]({detail})[/dim]" if detail else ""
        console.print(f"  [{color}]{icon}[/{color}] {name}{detail_str}")

    def table(self, title: str, columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
        table = Table(title=title, show_header=True, header_style="bold")
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*(str(value) for value in row))
        console.print(table)

    def progress(self) -> Progress:
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        )


ui = UI()

__all__ = ["UI", "console", "ui"]
