"""Favorite command - toggle favorite ports."""

import typer

from ..snapshot import SnapshotStore
from .common import console, get_db, success


def favorite(
    port: int | None = typer.Argument(None, help="Port to toggle", min=1, max=65535),
) -> None:
    """Toggle a port in favorites, or list favorites.

    Examples:
        devports favorite 3000
        devports favorite
    """
    store = SnapshotStore(get_db())

    if port is None:
        favorites = sorted(store.favorites)
        if not favorites:
            console.print("[yellow]No favorite ports[/yellow]")
            return
        console.print("[bold]Favorites:[/bold] " + ", ".join(str(p) for p in favorites))
        return

    if store.toggle_favorite(port):
        success(f"Added :{port} to favorites")
    else:
        console.print(f"[yellow]Removed :{port} from favorites[/yellow]")
