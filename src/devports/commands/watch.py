"""Watch command - rescan periodically."""

import asyncio

import typer

from ..models import FilterMode, GroupBy
from ..snapshot import Snapshot
from .common import build_engine, console, render_view


def watch(
    interval: int | None = typer.Option(
        None, "-i", "--interval", help="Seconds between scans (default: auto_refresh, else 5)"
    ),
    filter_mode: FilterMode | None = typer.Option(None, "-f", "--filter", help="Filter mode"),
    group_by: GroupBy | None = typer.Option(None, "-g", "--group-by", help="Grouping"),
    roots: list[str] | None = typer.Option(None, "-r", "--root", help="Workspace root"),
) -> None:
    """Rescan and redraw until interrupted.

    Examples:
        devports watch
        devports watch --interval 2 --filter dev
    """
    engine = build_engine(roots)
    if filter_mode is not None:
        engine.set_filter(filter_mode)
    seconds = interval or engine.settings.auto_refresh or 5

    def redraw(snapshot: Snapshot) -> None:
        console.clear()
        when = snapshot.scanned_at.strftime("%H:%M:%S") if snapshot.scanned_at else "-"
        console.print(f"[dim]Scanned at {when} · every {seconds}s · Ctrl+C to stop[/dim]")
        render_view(engine.current_view(group_by=group_by))

    try:
        asyncio.run(engine.run_auto_refresh(seconds, on_snapshot=redraw))
    except KeyboardInterrupt:
        console.print("[dim]Stopped[/dim]")
