"""Common utilities for CLI commands."""

from pathlib import Path

from rich.table import Table

from ..config import Settings, get_db_path, load_settings
from ..console import console, debug, error, error_console, info, success, warning
from ..db import Database
from ..engine import PortEngine
from ..grouping import View
from ..models import PortRecord

# Re-export console utilities
__all__ = [
    "console",
    "error_console",
    "debug",
    "info",
    "success",
    "warning",
    "error",
    "get_db",
    "get_settings",
    "build_engine",
    "render_view",
]


def get_db() -> Database:
    """Get database instance."""
    return Database(get_db_path())


def get_settings() -> Settings:
    """Get settings from the user config file."""
    return load_settings()


def build_engine(roots: list[str] | None = None, settings: Settings | None = None) -> PortEngine:
    """Create an engine for the CLI.

    Workspace roots come from the command line, then the config file, then
    the current directory.
    """
    settings = settings or get_settings()
    workspace_roots = roots or settings.workspace_roots or [str(Path.cwd())]
    debug(f"Workspace roots: {workspace_roots}")
    return PortEngine(
        settings=settings, db=get_db(), workspace_roots=lambda: workspace_roots
    )


def _ports_table(title: str, records: tuple[PortRecord, ...]) -> Table:
    table = Table(title=title, title_justify="left")
    table.add_column("Port", style="yellow", justify="right")
    table.add_column("PID", style="dim", justify="right")
    table.add_column("Process", style="green")
    table.add_column("Project", style="cyan")
    table.add_column("Status", style="magenta")

    for r in records:
        project = f"{r.project.framework} · {r.project.name}" if r.project else "-"
        star = "★ " if r.is_favorite else ""
        table.add_row(
            f"{star}{r.port}",
            str(r.pid) if r.pid else "-",
            r.process_name,
            project,
            r.status.value if r.status else "-",
        )
    return table


def render_view(view: View) -> None:
    """Print a view as one table per group, or one flat table."""
    if view.placeholder:
        console.print(f"[yellow]{view.placeholder}[/yellow]")
        return

    if not view.groups:
        console.print(_ports_table(f"Ports ({len(view.records)})", view.records))
        return

    for group in view.groups:
        console.print(_ports_table(f"{group.label} ({group.count})", group.records))
