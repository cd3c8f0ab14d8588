"""
Logging and terminal output for the service and CLI.

Uses rich for styled terminal output and as the logging handler.
"""

import logging
from contextlib import contextmanager
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table


console = Console()


def setup_logging(level: str = "INFO") -> None:
    """Route stdlib logging through rich. Call once per entry point."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def print_header(title: str) -> None:
    """Print a styled header."""
    console.print()
    console.print(Panel(title, style="bold magenta"))
    console.print()


def print_step(step: str, detail: str = "") -> None:
    """Print a progress step."""
    if detail:
        console.print(f"  [cyan]→[/cyan] {step}: [dim]{detail}[/dim]")
    else:
        console.print(f"  [cyan]→[/cyan] {step}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"  [green]✓[/green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"  [yellow]![/yellow] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"  [red]✗[/red] {message}")


def print_songs_table(
    songs: list[dict],
    title: str = "Songs",
    caption: Optional[str] = None,
) -> None:
    """Render API-shaped songs as a table."""
    table = Table(title=title, caption=caption)
    table.add_column("Title", style="bold")
    table.add_column("Composer")
    table.add_column("Voicing", style="cyan")
    table.add_column("Language")
    table.add_column("Difficulty", style="dim")
    table.add_column("Source", style="dim")

    for song in songs:
        table.add_row(
            song.get("title") or "",
            song.get("composer") or "",
            song.get("voicing") or "",
            song.get("language") or "",
            song.get("difficulty") or "",
            song.get("source") or "",
        )

    console.print(table)


def print_ingestion_summary(
    source: str,
    added: int,
    skipped: int,
    errors: list[str],
) -> None:
    """Print summary after an ingestion run."""
    console.print()

    table = Table(title="Ingestion Results", show_header=False)
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right")

    table.add_row("Source", source)
    table.add_row("Songs Added", f"[green]{added}[/green]")
    table.add_row("Songs Skipped", f"[yellow]{skipped}[/yellow]")
    table.add_row("Errors", f"[red]{len(errors)}[/red]" if errors else "[dim]0[/dim]")

    console.print(table)

    if errors:
        console.print()
        console.print("[bold red]Errors:[/bold red]")
        for error in errors[:10]:
            console.print(f"  [dim]{error}[/dim]")
        if len(errors) > 10:
            console.print(f"  [dim]... and {len(errors) - 10} more[/dim]")


@contextmanager
def status(message: str):
    """Context manager for showing a spinner during an operation."""
    with console.status(message, spinner="dots"):
        yield
