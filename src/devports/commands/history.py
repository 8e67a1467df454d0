"""History command - show port start/stop history."""

import typer
from rich.table import Table

from .common import console, get_db, success


def history(
    limit: int = typer.Option(50, "-n", "--limit", help="Number of entries"),
    clear: bool = typer.Option(False, "--clear", help="Delete all history"),
) -> None:
    """Show recent port history, newest first.

    Examples:
        devports history
        devports history -n 10
        devports history --clear
    """
    db = get_db()

    if clear:
        count = db.clear_history()
        success(f"Deleted {count} history entr{'y' if count == 1 else 'ies'}")
        return

    entries = db.get_history(limit)
    if not entries:
        console.print("[yellow]No port history available[/yellow]")
        return

    table = Table(title=f"Port History (last {len(entries)})")
    table.add_column("Time", style="dim")
    table.add_column("Port", style="yellow", justify="right")
    table.add_column("Process", style="green")
    table.add_column("Action", style="magenta")
    table.add_column("Details")

    for entry in reversed(entries):
        table.add_row(
            entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            str(entry.port),
            f"{entry.process_name} ({entry.pid})",
            entry.action.value,
            entry.details or "",
        )

    console.print(table)
