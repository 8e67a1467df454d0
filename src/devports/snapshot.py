"""Snapshot store: current records, favorites and history."""

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime

from .config import DEFAULT_HISTORY_LIMIT
from .db import Database
from .models import HistoryAction, HistoryEntry, PortRecord, PortStatus


@dataclass(frozen=True)
class Snapshot:
    """Immutable result of one published scan."""

    records: tuple[PortRecord, ...] = ()
    scanned_at: datetime | None = None
    backend: str | None = None  # None when every backend failed

    @property
    def scanned(self) -> bool:
        return self.scanned_at is not None

    @property
    def empty(self) -> bool:
        """True when the scan found no listening ports at all."""
        return self.scanned and not self.records


@dataclass
class ScanDiff:
    """Port-level differences between two snapshots."""

    started: list[PortRecord] = field(default_factory=list)
    stopped: list[PortRecord] = field(default_factory=list)
    changed: list[PortRecord] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.started or self.stopped or self.changed)

    def history_entries(self, timestamp: datetime) -> list[HistoryEntry]:
        """Convert the diff into history log entries."""
        entries = [
            HistoryEntry(
                port=r.port,
                pid=r.pid,
                process_name=r.process_name,
                timestamp=timestamp,
                action=HistoryAction.STARTED,
            )
            for r in self.started
        ]
        entries.extend(
            HistoryEntry(
                port=r.port,
                pid=r.pid,
                process_name=r.process_name,
                timestamp=timestamp,
                action=HistoryAction.STOPPED,
            )
            for r in self.stopped
        )
        entries.extend(
            HistoryEntry(
                port=r.port,
                pid=r.pid,
                process_name=r.process_name,
                timestamp=timestamp,
                action=HistoryAction.CHANGED,
                details=f"now PID {r.pid} ({r.process_name})",
            )
            for r in self.changed
        )
        return entries


def diff_snapshots(
    previous: Iterable[PortRecord], current: Iterable[PortRecord]
) -> ScanDiff:
    """Compare two record sets port by port.

    A port is changed when its set of (pid, process name) owners differs;
    the order in which a backend reports the owners does not matter.

    Args:
        previous: Records of the previous snapshot
        current: Records of the new scan

    Returns:
        ScanDiff with one started, stopped or changed record per port
    """
    before = _owners_by_port(previous)
    after = _owners_by_port(current)

    diff = ScanDiff()
    for port, records in after.items():
        old = before.get(port)
        if old is None:
            diff.started.append(records[0])
            continue
        old_owners = {(r.pid, r.process_name) for r in old}
        if old_owners != {(r.pid, r.process_name) for r in records}:
            newcomer = next(
                (r for r in records if (r.pid, r.process_name) not in old_owners),
                records[0],
            )
            diff.changed.append(newcomer)
    diff.stopped = [records[0] for port, records in before.items() if port not in after]
    return diff


def _owners_by_port(records: Iterable[PortRecord]) -> dict[int, list[PortRecord]]:
    by_port: dict[int, list[PortRecord]] = {}
    for record in records:
        by_port.setdefault(record.port, []).append(record)
    return by_port


class SnapshotStore:
    """Owns the current snapshot, the favorites set and the history log."""

    def __init__(self, db: Database, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        """Initialize store, loading persisted favorites.

        Args:
            db: Database for favorites and history persistence
            history_limit: Maximum number of history entries kept
        """
        self.db = db
        self.history_limit = history_limit
        self._favorites: set[int] = db.get_favorites()
        self._snapshot = Snapshot()

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def favorites(self) -> frozenset[int]:
        return frozenset(self._favorites)

    def is_favorite(self, port: int) -> bool:
        return port in self._favorites

    def toggle_favorite(self, port: int) -> bool:
        """Toggle favorite membership and persist it.

        Every held record for the port is updated immediately.

        Args:
            port: Port number

        Returns:
            True if the port is now a favorite
        """
        if port in self._favorites:
            self._favorites.discard(port)
            self.db.remove_favorite(port)
        else:
            self._favorites.add(port)
            self.db.add_favorite(port)

        favorite = port in self._favorites
        records = tuple(
            replace(r, is_favorite=favorite) if r.port == port else r
            for r in self._snapshot.records
        )
        self._snapshot = replace(self._snapshot, records=records)
        return favorite

    def publish(
        self,
        records: Iterable[PortRecord],
        backend: str | None,
        scanned_at: datetime | None = None,
        record_history: bool = True,
    ) -> ScanDiff:
        """Replace the current snapshot with a new scan.

        Records get their lifecycle status and seen timestamps relative to
        the previous snapshot: new when the port was absent, changed when
        the port was held by other pids, stable when the same (port, pid)
        was already listening. A scan following no successful scan is a
        baseline and adds nothing to the history log.

        Args:
            records: Records of the completed scan
            backend: Name of the backend that produced them
            scanned_at: Scan time (defaults to now)
            record_history: Append the diff to the history log

        Returns:
            Diff against the previous snapshot
        """
        scanned_at = scanned_at or datetime.now()
        previous = self._snapshot
        before = {r.key: r for r in previous.records}
        known_ports = {r.port for r in previous.records}
        # No usable previous scan: nothing to compare against
        baseline = previous.backend is None

        stamped = []
        for record in records:
            old = before.get(record.key)
            if baseline or record.port not in known_ports:
                status, first_seen = PortStatus.NEW, scanned_at
            elif old is None:
                status, first_seen = PortStatus.CHANGED, scanned_at
            else:
                status, first_seen = PortStatus.STABLE, old.first_seen or scanned_at
            stamped.append(
                replace(
                    record,
                    is_favorite=record.port in self._favorites,
                    status=status,
                    first_seen=first_seen,
                    last_seen=scanned_at,
                )
            )

        self._snapshot = Snapshot(
            records=tuple(stamped), scanned_at=scanned_at, backend=backend
        )

        diff = diff_snapshots(previous.records, stamped)
        if record_history and not baseline and diff:
            self.db.append_history(diff.history_entries(scanned_at), self.history_limit)
        return diff

    def history(self, limit: int | None = None) -> list[HistoryEntry]:
        return self.db.get_history(limit)
