"""Database layer for devports - SQLite-based favorites and history."""

import sqlite3
import threading
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

import platformdirs

from .models import HistoryAction, HistoryEntry


class Database:
    """SQLite database manager for favorites and port history."""

    _lock = threading.Lock()

    def __init__(self, db_path: Path | None = None) -> None:
        """Initialize database connection.

        Args:
            db_path: Path to the SQLite database file. If None, uses default location.
        """
        if db_path is None:
            data_dir = Path(platformdirs.user_data_dir("devports", "devports"))
            data_dir.mkdir(parents=True, exist_ok=True, mode=0o700)
            db_path = data_dir / "registry.db"

        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        self._init_schema()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema if not exists."""
        with self._lock, self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
            )
            if cursor.fetchone() is None:
                conn.executescript(
                    """
                    -- Version tracking
                    CREATE TABLE schema_version (
                        version INTEGER PRIMARY KEY
                    );
                    INSERT INTO schema_version VALUES (1);

                    -- Favorite ports, survive scans and sessions
                    CREATE TABLE favorites (
                        port INTEGER PRIMARY KEY,
                        created_at TEXT DEFAULT (datetime('now'))
                    );

                    -- Append-only port history
                    CREATE TABLE history (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        port INTEGER NOT NULL,
                        pid INTEGER NOT NULL,
                        process TEXT NOT NULL,
                        timestamp TEXT NOT NULL,
                        action TEXT NOT NULL,
                        details TEXT
                    );

                    CREATE INDEX idx_history_port ON history(port);
                """
                )
                conn.commit()

    def get_favorites(self) -> set[int]:
        """Get the set of favorite ports.

        Returns:
            Set of port numbers
        """
        with self._lock, self._get_connection() as conn:
            cursor = conn.execute("SELECT port FROM favorites")
            return {row["port"] for row in cursor.fetchall()}

    def add_favorite(self, port: int) -> None:
        """Mark a port as favorite.

        Args:
            port: Port number
        """
        with self._lock, self._get_connection() as conn:
            conn.execute("INSERT OR IGNORE INTO favorites (port) VALUES (?)", (port,))
            conn.commit()

    def remove_favorite(self, port: int) -> bool:
        """Remove a port from favorites.

        Args:
            port: Port number

        Returns:
            True if removed, False if it was not a favorite
        """
        with self._lock, self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM favorites WHERE port = ?", (port,))
            conn.commit()
            return cursor.rowcount > 0

    def append_history(
        self, entries: Iterable[HistoryEntry], limit: int | None = None
    ) -> int:
        """Append history entries, then trim the oldest beyond limit.

        Args:
            entries: Entries to append, in chronological order
            limit: Maximum number of entries to keep (None for unbounded)

        Returns:
            Number of entries appended
        """
        rows = [
            (
                e.port,
                e.pid,
                e.process_name,
                e.timestamp.isoformat(),
                e.action.value,
                e.details,
            )
            for e in entries
        ]
        with self._lock, self._get_connection() as conn:
            if rows:
                conn.executemany(
                    """
                    INSERT INTO history (port, pid, process, timestamp, action, details)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    rows,
                )
            if limit is not None:
                conn.execute(
                    """
                    DELETE FROM history WHERE id NOT IN (
                        SELECT id FROM history ORDER BY id DESC LIMIT ?
                    )
                    """,
                    (limit,),
                )
            conn.commit()
        return len(rows)

    def get_history(self, limit: int | None = None) -> list[HistoryEntry]:
        """Get history entries in chronological order.

        Args:
            limit: Only return the most recent N entries

        Returns:
            List of history entries, oldest first
        """
        with self._lock, self._get_connection() as conn:
            if limit is None:
                cursor = conn.execute("SELECT * FROM history ORDER BY id")
                rows = cursor.fetchall()
            else:
                cursor = conn.execute(
                    "SELECT * FROM history ORDER BY id DESC LIMIT ?", (limit,)
                )
                rows = list(reversed(cursor.fetchall()))

        return [
            HistoryEntry(
                port=row["port"],
                pid=row["pid"],
                process_name=row["process"],
                timestamp=datetime.fromisoformat(row["timestamp"]),
                action=HistoryAction(row["action"]),
                details=row["details"],
            )
            for row in rows
        ]

    def clear_history(self) -> int:
        """Delete all history entries.

        Returns:
            Number of deleted entries
        """
        with self._lock, self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM history")
            conn.commit()
            return cursor.rowcount
