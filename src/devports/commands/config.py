"""Config command - manage labels, groups and workspace paths."""

import typer
from rich.table import Table

from ..classifier import merge_port_labels
from ..config import get_config_path, parse_port, save_settings
from .common import console, error, get_settings, info, success


def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    set_label: str | None = typer.Option(
        None, "--set-label", help="Set port label: port:label"
    ),
    set_group: str | None = typer.Option(
        None, "--set-group", help="Set custom group: name:port,port,..."
    ),
    add_path: str | None = typer.Option(
        None, "--add-path", help="Add an extra workspace path"
    ),
) -> None:
    """Manage devports configuration.

    Examples:
        devports config --show
        devports config --set-label 3000:Storefront
        devports config --set-group Backend:5000,8000
        devports config --add-path services/api
    """
    settings = get_settings()

    if show:
        console.print(f"[dim]Config file: {get_config_path()}[/dim]")
        table = Table(title="Settings")
        table.add_column("Key", style="green")
        table.add_column("Value", style="yellow")
        for key, value in settings.to_dict().items():
            if key not in ("port_labels", "groups"):
                table.add_row(key, str(value))
        console.print(table)

        labels = Table(title="Port Labels")
        labels.add_column("Port", style="yellow", justify="right")
        labels.add_column("Label", style="green")
        for port, label in sorted(merge_port_labels(settings.port_labels).items()):
            labels.add_row(str(port), label)
        console.print(labels)

        if settings.groups:
            groups = Table(title="Groups")
            groups.add_column("Group", style="green")
            groups.add_column("Ports", style="yellow")
            for name, ports in settings.groups.items():
                groups.add_row(name, ", ".join(str(p) for p in ports))
            console.print(groups)
        return

    if set_label:
        port_str, sep, label = set_label.partition(":")
        port = parse_port(port_str)
        if not sep or port is None or not label.strip():
            error("Format should be port:label")
            raise typer.Exit(1)
        settings.port_labels[port] = label.strip()
        save_settings(settings)
        success(f"Labeled {port}: {label.strip()}")
        return

    if set_group:
        name, sep, ports_str = set_group.partition(":")
        if not sep or not name.strip():
            error("Format should be name:port,port,...")
            raise typer.Exit(1)

        ports = []
        for part in ports_str.split(","):
            port = parse_port(part)
            if port is None:
                error(f"Invalid port: {part.strip()}")
                raise typer.Exit(1)
            ports.append(port)

        settings.groups[name.strip()] = ports
        save_settings(settings)
        success(f"Created group \"{name.strip()}\" with {len(ports)} ports")
        return

    if add_path:
        if add_path not in settings.workspace_paths:
            settings.workspace_paths.append(add_path)
            save_settings(settings)
        success(f"Workspace path added: {add_path}")
        return

    info("Use --show, --set-label, --set-group or --add-path")
