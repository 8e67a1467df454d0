"""Scan command - list listening ports."""

import asyncio

import typer

from ..models import FilterMode, GroupBy, ViewMode
from .common import build_engine, render_view


def scan(
    search: str = typer.Option("", "-s", "--search", help="Search term"),
    filter_mode: FilterMode | None = typer.Option(
        None, "-f", "--filter", help="Filter: none, favorites, dev, workspace"
    ),
    group_by: GroupBy | None = typer.Option(
        None, "-g", "--group-by", help="Group by: category, port, process, group, workspace"
    ),
    flat: bool = typer.Option(False, "--list", help="Flat list instead of groups"),
    roots: list[str] | None = typer.Option(
        None, "-r", "--root", help="Workspace root (repeatable, default: cwd)"
    ),
) -> None:
    """Scan listening TCP ports and show them.

    Examples:
        devports scan
        devports scan --filter dev
        devports scan --group-by process --search node
    """
    engine = build_engine(roots)
    asyncio.run(engine.scan())
    render_view(
        engine.current_view(
            search_term=search,
            filter_mode=filter_mode,
            group_by=group_by,
            view_mode=ViewMode.LIST if flat else None,
        )
    )
