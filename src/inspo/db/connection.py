"""SQLite connection layer."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from inspo.errors import StorageUnavailable

MEMORY = ":memory:"


class Database:
    """Per-profile SQLite database file."""

    def __init__(self, db_path: Path | str) -> None:
        """Store the database path. Call connect() to open the connection.

        Args:
            db_path: Path to the SQLite database file (created if missing),
                or ":memory:" for an isolated in-memory database.
        """
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None

    @property
    def in_memory(self) -> bool:
        return str(self.db_path) == MEMORY

    def connect(self) -> sqlite3.Connection:
        """Open a connection with row access by name and return it.

        Raises:
            StorageUnavailable: If the file cannot be created or opened.
        """
        try:
            if not self.in_memory:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode = WAL")
        except (OSError, sqlite3.Error) as exc:
            raise StorageUnavailable(
                f"Cannot open database at '{self.db_path}': {exc}"
            ) from exc
        return conn

    def __enter__(self) -> sqlite3.Connection:
        """Open the database and return the connection (context manager support)."""
        self._conn = self.connect()
        return self._conn

    def __exit__(self, *args: object) -> None:
        """Close the connection when leaving the context manager."""
        if self._conn:
            self._conn.close()
            self._conn = None
