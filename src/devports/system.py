"""System backends for listening-socket enumeration."""

import asyncio
import re
import sys
from collections.abc import AsyncIterator, Callable

import psutil

from .models import ListeningSocket

UNKNOWN_PROCESS = "Unknown"

_SS_USERS = re.compile(r'users:\(\("([^"]*)",pid=(\d+)')
_NETSTAT_PID = re.compile(r"^(\d+)(?:/(.*))?$")


class ProcessKillError(Exception):
    """Raised when a process cannot be terminated."""

    pass


class PsutilBackend:
    """Primary backend: psutil connection and process tables."""

    name = "psutil"

    async def listening_sockets(self) -> list[ListeningSocket]:
        """Get all TCP sockets in LISTEN state, IPv4 and IPv6.

        Returns:
            Listening sockets in backend order (may contain duplicates)
        """
        return await asyncio.to_thread(self._collect)

    def _collect(self) -> list[ListeningSocket]:
        connections = psutil.net_connections(kind="tcp")
        processes = self._process_table()

        sockets = []
        for conn in connections:
            if conn.status != psutil.CONN_LISTEN or not conn.laddr:
                continue
            port = conn.laddr.port
            if not port:
                continue

            pid = conn.pid or 0
            name, command_line = processes.get(pid, (UNKNOWN_PROCESS, ""))
            sockets.append(
                ListeningSocket(
                    port=port, pid=pid, process_name=name, command_line=command_line
                )
            )
        return sockets

    def _process_table(self) -> dict[int, tuple[str, str]]:
        """Map pid to (name, command line) for every visible process."""
        table: dict[int, tuple[str, str]] = {}
        for proc in psutil.process_iter(["pid", "name", "cmdline"]):
            info = proc.info
            cmdline = info.get("cmdline") or []
            table[info["pid"]] = (
                info.get("name") or UNKNOWN_PROCESS,
                " ".join(cmdline),
            )
        return table


def parse_ss_line(line: str) -> ListeningSocket | None:
    """Parse a line of ``ss -tlnpH`` output.

    Format: LISTEN 0 128 127.0.0.1:5432 0.0.0.0:* users:(("postgres",pid=812,fd=5))
    """
    parts = line.split()
    if len(parts) < 4 or "LISTEN" not in parts[0].upper():
        return None
    port = _port_from_address(parts[3])
    if port is None:
        return None

    pid, name = 0, UNKNOWN_PROCESS
    match = _SS_USERS.search(line)
    if match:
        name = match.group(1) or UNKNOWN_PROCESS
        pid = int(match.group(2))
    return ListeningSocket(port=port, pid=pid, process_name=name)


def parse_lsof_line(line: str) -> ListeningSocket | None:
    """Parse a line of ``lsof -iTCP -sTCP:LISTEN -P -n`` output.

    Format: node 4242 user 23u IPv6 0x1 0t0 TCP *:3000 (LISTEN)
    """
    parts = line.split()
    if len(parts) < 9 or "(LISTEN)" not in line or not parts[1].isdigit():
        return None
    port = _port_from_address(parts[-2])
    if port is None:
        return None
    return ListeningSocket(port=port, pid=int(parts[1]), process_name=parts[0])


def parse_netstat_line(line: str) -> ListeningSocket | None:
    """Parse a line of netstat output.

    Linux:   tcp  0 0 0.0.0.0:22 0.0.0.0:* LISTEN 123/sshd
    Windows: TCP  0.0.0.0:135 0.0.0.0:0 LISTENING 1012
    """
    parts = line.split()
    if len(parts) < 4 or not parts[0].lower().startswith("tcp"):
        return None

    state_index = next(
        (i for i, part in enumerate(parts) if "LISTEN" in part.upper()), None
    )
    if state_index is None or state_index < 2:
        return None
    port = _port_from_address(parts[state_index - 2])
    if port is None:
        return None

    pid, name = 0, UNKNOWN_PROCESS
    if state_index + 1 < len(parts):
        match = _NETSTAT_PID.match(parts[state_index + 1])
        if match:
            pid = int(match.group(1))
            name = match.group(2) or UNKNOWN_PROCESS
    return ListeningSocket(port=port, pid=pid, process_name=name)


def _port_from_address(address: str) -> int | None:
    """Extract the port from host:port, [::]:port or *.port forms."""
    match = re.search(r"[:.](\d+)$", address)
    if not match:
        return None
    port = int(match.group(1))
    if 1 <= port <= 65535:
        return port
    return None


class CommandBackend:
    """Fallback backend: stream output of ss, lsof or netstat.

    Tries multiple tools in order:
    1. ss (Linux, fast)
    2. lsof (macOS/Linux, slower)
    3. netstat (Windows/universal, slowest)

    The first tool that produces at least one listening row wins.
    """

    name = "netstat"

    def __init__(self, timeout: float = 10.0) -> None:
        """Initialize backend.

        Args:
            timeout: Seconds to wait for each output line
        """
        self.timeout = timeout

    def commands(self) -> list[tuple[list[str], Callable[[str], ListeningSocket | None]]]:
        """Commands to try with their line parsers, in order."""
        if sys.platform == "win32":
            return [(["netstat", "-ano", "-p", "tcp"], parse_netstat_line)]
        return [
            (["ss", "-tlnpH"], parse_ss_line),
            (["lsof", "-iTCP", "-sTCP:LISTEN", "-P", "-n"], parse_lsof_line),
            (["netstat", "-tlnp"], parse_netstat_line),
        ]

    async def stream(self) -> AsyncIterator[ListeningSocket]:
        """Yield listening sockets one row at a time.

        Yields:
            Parsed listening sockets (may contain duplicates)
        """
        for command, parser in self.commands():
            found = False
            try:
                async for line in self._run_lines(command):
                    row = parser(line)
                    if row is not None:
                        found = True
                        yield row
            except (OSError, asyncio.TimeoutError):
                # Tool missing or hung, try the next one
                continue
            if found:
                return

    async def _run_lines(self, command: list[str]) -> AsyncIterator[str]:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
        assert proc.stdout is not None
        try:
            while True:
                raw = await asyncio.wait_for(proc.stdout.readline(), self.timeout)
                if not raw:
                    break
                yield raw.decode(errors="replace").rstrip("\n")
        finally:
            if proc.returncode is None:
                try:
                    proc.kill()
                except ProcessLookupError:
                    pass
            await proc.wait()


def lookup_process(pid: int) -> tuple[str, str] | None:
    """Look up (name, command line) for a pid.

    Args:
        pid: Process id

    Returns:
        Name and command line, or None if the process is gone or hidden
    """
    if pid <= 0:
        return None
    try:
        proc = psutil.Process(pid)
        return proc.name(), " ".join(proc.cmdline())
    except psutil.Error:
        return None


def terminate_process(pid: int) -> str:
    """Terminate a process.

    Args:
        pid: Process id

    Returns:
        Name of the terminated process

    Raises:
        ProcessKillError: If the process does not exist or cannot be signalled
    """
    if pid <= 0:
        raise ProcessKillError(f"Invalid PID {pid}")
    try:
        proc = psutil.Process(pid)
        name = proc.name()
        proc.terminate()
        return name
    except psutil.NoSuchProcess:
        raise ProcessKillError(f"No process with PID {pid}")
    except psutil.AccessDenied:
        raise ProcessKillError(
            f"Permission denied for PID {pid}; try again with elevated privileges"
        )
