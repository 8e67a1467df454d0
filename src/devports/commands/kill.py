"""Kill command - terminate a listening process by PID."""

import typer

from ..system import ProcessKillError, terminate_process
from .common import console, error, success


def kill(
    pid: int = typer.Argument(..., help="PID of the process to terminate"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Terminate a process by PID.

    Examples:
        devports kill 4242
    """
    if not force and not typer.confirm(f"Terminate PID {pid}?"):
        console.print("[yellow]Cancelled[/yellow]")
        return

    try:
        name = terminate_process(pid)
    except ProcessKillError as e:
        error(str(e))
        raise typer.Exit(1)

    success(f"Terminated {name} (PID {pid})")
