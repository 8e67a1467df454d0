"""Analytics command - usage statistics."""

import asyncio

import typer
from rich.table import Table

from .common import build_engine, console


def analytics(
    top: int = typer.Option(10, "--top", help="Number of most-used ports"),
) -> None:
    """Scan, then show port usage statistics.

    Examples:
        devports analytics
    """
    engine = build_engine()
    asyncio.run(engine.scan())
    stats = engine.analytics(top=top)

    console.print("[bold]Current Status[/bold]")
    console.print(f"  [dim]Total ports:[/dim]  {stats.total_ports}")
    console.print(f"  [dim]Dev servers:[/dim]  {stats.active_dev}")
    console.print(f"  [dim]System:[/dim]       {stats.system_ports}")
    console.print(f"  [dim]Favorites:[/dim]    {stats.favorite_count}")
    console.print(f"  [dim]Dev share:[/dim]    {stats.dev_share:.0%}")

    table = Table(title="Most Used Ports")
    table.add_column("Port", style="yellow", justify="right")
    table.add_column("Label", style="green")
    table.add_column("Sessions", justify="right")
    for usage in stats.most_used_ports:
        table.add_row(str(usage.port), usage.label, str(usage.count))
    console.print(table)

    if not stats.recent_activity:
        return

    console.print("[bold]Recent Activity[/bold]")
    for entry in stats.recent_activity:
        when = entry.timestamp.strftime("%H:%M:%S")
        console.print(
            f"  [dim]{when}[/dim] :{entry.port} {entry.action.value} ({entry.process_name})"
        )
