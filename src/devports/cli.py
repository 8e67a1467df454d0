"""Typer CLI for devports - Main entry point."""

import typer

from . import __version__
from .commands import analytics, config, favorite, history, kill, scan, watch

app = typer.Typer(
    name="devports",
    help="Discover and classify listening development ports",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"devports version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Discover and classify listening development ports."""
    pass

# Register all commands
app.command()(scan)
app.command()(watch)
app.command()(favorite)
app.command()(history)
app.command()(analytics)
app.command()(kill)
app.command()(config)


def main() -> None:
    """Main entry point."""
    app()
