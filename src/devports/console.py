"""Console and diagnostic utilities for devports."""

import os
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from rich.console import Console

# Shared console instances
console = Console()
error_console = Console(stderr=True)

# Debug mode - enabled by DEVPORTS_DEBUG environment variable
DEBUG = os.getenv("DEVPORTS_DEBUG", "").lower() in ("1", "true", "yes")


def debug(message: str, **kwargs: Any) -> None:
    """Print debug message if DEBUG mode is enabled.

    Args:
        message: Message to print
        **kwargs: Additional arguments for console.print
    """
    if DEBUG:
        error_console.print(f"[dim][DEBUG][/dim] {message}", **kwargs)


def info(message: str, **kwargs: Any) -> None:
    """Print info message."""
    console.print(message, **kwargs)


def success(message: str, **kwargs: Any) -> None:
    """Print success message in green."""
    console.print(f"[green]{message}[/green]", **kwargs)


def warning(message: str, **kwargs: Any) -> None:
    """Print warning message in yellow to stderr.

    Warnings go to stderr so that scan output piped elsewhere stays clean.
    """
    error_console.print(f"[yellow]Warning:[/yellow] {message}", **kwargs)


def error(message: str, **kwargs: Any) -> None:
    """Print error message in red to stderr."""
    error_console.print(f"[red]Error:[/red] {message}", **kwargs)


@dataclass(frozen=True)
class Diagnostic:
    """A swallowed fault, kept for inspection."""

    source: str  # e.g. "scanner", "detection", "lookup"
    message: str
    detail: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)


class DiagnosticLog:
    """Bounded log of diagnostics produced by best-effort code paths."""

    def __init__(self, maxlen: int = 200) -> None:
        self._entries: deque[Diagnostic] = deque(maxlen=maxlen)

    def record(self, source: str, message: str, exc: BaseException | None = None) -> Diagnostic:
        """Record a diagnostic and echo it in debug mode.

        Args:
            source: Component that swallowed the fault
            message: Short description
            exc: The swallowed exception, if any

        Returns:
            The recorded diagnostic
        """
        detail = f"{type(exc).__name__}: {exc}" if exc is not None else None
        entry = Diagnostic(source=source, message=message, detail=detail)
        self._entries.append(entry)
        debug(f"[{source}] {message}" + (f" ({detail})" if detail else ""))
        return entry

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
