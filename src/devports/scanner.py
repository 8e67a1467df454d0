"""Listening-port scanner with primary and fallback backends."""

from collections.abc import AsyncIterator, Callable, Iterable
from dataclasses import dataclass, field
from typing import Protocol

from .console import DiagnosticLog
from .models import ListeningSocket
from .system import UNKNOWN_PROCESS, CommandBackend, PsutilBackend, lookup_process


class ScanError(Exception):
    """No backend could enumerate listening sockets."""

    pass


class PrimaryBackend(Protocol):
    name: str

    async def listening_sockets(self) -> list[ListeningSocket]: ...


class FallbackBackend(Protocol):
    name: str

    def stream(self) -> AsyncIterator[ListeningSocket]: ...


ProcessLookup = Callable[[int], tuple[str, str] | None]


@dataclass
class ScanOutcome:
    """Result of one scan across backends."""

    sockets: list[ListeningSocket]
    backend: str | None  # Name of the backend that produced the sockets
    warnings: list[str] = field(default_factory=list)
    error: ScanError | None = None

    @property
    def failed(self) -> bool:
        return self.backend is None


def dedupe_sockets(sockets: Iterable[ListeningSocket]) -> list[ListeningSocket]:
    """Drop duplicate (port, pid) pairs, first occurrence wins.

    Args:
        sockets: Sockets in backend order

    Returns:
        Sockets with one entry per distinct (port, pid)
    """
    seen: set[tuple[int, int]] = set()
    unique = []
    for sock in sockets:
        key = (sock.port, sock.pid)
        if key in seen or not sock.port:
            continue
        seen.add(key)
        unique.append(sock)
    return unique


def filter_workspace_sockets(
    sockets: Iterable[ListeningSocket], paths: Iterable[str]
) -> list[ListeningSocket]:
    """Keep sockets whose command line mentions a workspace path.

    The filter is inactive when no paths are configured.

    Args:
        sockets: Candidate sockets
        paths: Workspace roots and extra paths

    Returns:
        Matching sockets
    """
    lowered = [p.lower() for p in paths if p]
    if not lowered:
        return list(sockets)
    return [
        sock
        for sock in sockets
        if any(p in (sock.command_line or "").lower() for p in lowered)
    ]


class PortScanner:
    """Enumerate listening TCP sockets and their owning processes."""

    def __init__(
        self,
        primary: PrimaryBackend | None = None,
        fallback: FallbackBackend | None = None,
        process_lookup: ProcessLookup | None = lookup_process,
        diagnostics: DiagnosticLog | None = None,
    ) -> None:
        """Initialize scanner.

        Args:
            primary: Primary backend (psutil by default)
            fallback: Fallback backend (ss/lsof/netstat by default)
            process_lookup: Fills in process names and command lines for
                fallback rows; None disables enrichment
            diagnostics: Log for swallowed faults
        """
        self.primary = primary or PsutilBackend()
        self.fallback = fallback or CommandBackend()
        self.process_lookup = process_lookup
        self.diagnostics = diagnostics or DiagnosticLog()

    async def scan(self) -> ScanOutcome:
        """Scan listening sockets.

        Strategy:
        1. Primary backend → deduplicated sockets
        2. On fault or zero sockets → fallback backend
        3. Both fail → empty outcome with warnings (never raises)

        Returns:
            ScanOutcome with deduplicated sockets
        """
        warnings: list[str] = []

        try:
            sockets = dedupe_sockets(await self.primary.listening_sockets())
            if sockets:
                return ScanOutcome(sockets=sockets, backend=self.primary.name)
            self.diagnostics.record(
                "scanner", f"{self.primary.name} found no listening sockets"
            )
        except Exception as e:
            message = f"{self.primary.name} backend failed, falling back to {self.fallback.name}: {e}"
            warnings.append(message)
            self.diagnostics.record("scanner", message, e)

        try:
            sockets = await self._scan_fallback()
        except Exception as e:
            message = f"{self.fallback.name} backend failed: {e}"
            warnings.append(message)
            self.diagnostics.record("scanner", message, e)
            sockets = []

        if not sockets:
            error = ScanError("No listening sockets found by any backend")
            warnings.append(str(error))
            return ScanOutcome(sockets=[], backend=None, warnings=warnings, error=error)

        return ScanOutcome(sockets=sockets, backend=self.fallback.name, warnings=warnings)

    async def _scan_fallback(self) -> list[ListeningSocket]:
        rows = [row async for row in self.fallback.stream()]
        return [self._enrich(row) for row in dedupe_sockets(rows)]

    def _enrich(self, row: ListeningSocket) -> ListeningSocket:
        if self.process_lookup is None or not row.pid or row.command_line:
            return row
        try:
            found = self.process_lookup(row.pid)
        except Exception as e:
            self.diagnostics.record("lookup", f"Process lookup failed for PID {row.pid}", e)
            return row
        if not found:
            return row
        name, command_line = found
        if row.process_name and row.process_name != UNKNOWN_PROCESS:
            name = row.process_name
        return ListeningSocket(
            port=row.port,
            pid=row.pid,
            process_name=name or UNKNOWN_PROCESS,
            command_line=command_line,
        )
