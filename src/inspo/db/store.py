"""Object-store access over SQLite.

Single interface for the "projects" and "inspirations" object stores: keyed
get/put/delete, secondary-index queries, and cascade helpers. Records are
plain dicts serialised as JSON; indexed fields are mirrored into columns.

The process holds at most one Store per database file (see open_store()).
Handles are never closed implicitly; process teardown releases them.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from inspo.db.connection import Database
from inspo.db.migrations import current_version
from inspo.db.schema import ObjectStoreDef, get_store_def, initialize
from inspo.errors import StorageUnavailable, StorageWriteError

logger = logging.getLogger(__name__)

_handles: dict[str, Store] = {}


class Store:
    """Data access layer for all inspo object stores.

    Wraps an open sqlite3.Connection with the schema initialised. Single
    writes commit immediately; use transaction() to group writes across
    stores into one atomic unit.
    """

    def __init__(self, conn: sqlite3.Connection, db_path: Path | None = None) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with schema initialised
                (see inspo.db.schema.initialize).
            db_path: Path of the underlying file, for display only.
        """
        self._conn = conn
        self.db_path = db_path
        self._tx_depth = 0

    @classmethod
    def open(cls, db_path: Path | str) -> Store:
        """Open *db_path*, initialise the schema, and return a new Store.

        Prefer open_store(), which reuses the process-wide handle.

        Raises:
            StorageUnavailable: If the engine cannot be initialised.
        """
        db = Database(db_path)
        conn = db.connect()
        try:
            initialize(conn)
        except sqlite3.Error as exc:
            conn.close()
            raise StorageUnavailable(
                f"Cannot initialise database at '{db.db_path}': {exc}"
            ) from exc
        return cls(conn, None if db.in_memory else db.db_path)

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[Store]:
        """Group every write in the block into one transaction.

        Commits on normal exit, rolls back on any exception and re-raises it.
        Nested blocks join the outermost transaction.
        """
        self._tx_depth += 1
        try:
            yield self
        except BaseException:
            self._tx_depth -= 1
            if self._tx_depth == 0:
                self._conn.rollback()
                logger.debug("Transaction rolled back")
            raise
        else:
            self._tx_depth -= 1
            if self._tx_depth == 0:
                self._commit()

    @property
    def in_transaction(self) -> bool:
        return self._tx_depth > 0

    def _commit(self) -> None:
        if self.in_transaction:
            return
        try:
            self._conn.commit()
        except sqlite3.Error as exc:
            self._conn.rollback()
            raise StorageWriteError(f"Commit failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Keyed access
    # ------------------------------------------------------------------

    def get(self, store_name: str, record_id: str) -> dict[str, Any] | None:
        """Return the record stored under *record_id*, or None if not found."""
        store = get_store_def(store_name)
        row = self._read(
            f"SELECT record FROM {store.name} WHERE {store.key} = ?", (record_id,)
        ).fetchone()
        return json.loads(row["record"]) if row else None

    def put(self, store_name: str, record: dict[str, Any]) -> None:
        """Upsert *record* by its key, replacing any existing record whole.

        Raises:
            StorageWriteError: If the engine rejects the write.
        """
        store = get_store_def(store_name)
        columns = (store.key, *store.indexes, "created_at", "record")
        values = (
            record[store.key],
            *(record[i] for i in store.indexes),
            record.get("created_at", ""),
            json.dumps(record, ensure_ascii=False),
        )
        placeholders = ", ".join("?" * len(columns))
        self._write(
            f"INSERT OR REPLACE INTO {store.name} ({', '.join(columns)}) VALUES ({placeholders})",
            values,
        )
        self._commit()

    def delete(self, store_name: str, record_id: str) -> None:
        """Delete a record by key. No-op if it does not exist."""
        store = get_store_def(store_name)
        self._write(f"DELETE FROM {store.name} WHERE {store.key} = ?", (record_id,))
        self._commit()

    def get_all(self, store_name: str) -> list[dict[str, Any]]:
        """Return every record in *store_name* in engine order."""
        store = get_store_def(store_name)
        rows = self._read(f"SELECT record FROM {store.name} ORDER BY rowid").fetchall()
        return [json.loads(r["record"]) for r in rows]

    # ------------------------------------------------------------------
    # Secondary indexes
    # ------------------------------------------------------------------

    def query_by_index(
        self, store_name: str, index_name: str, value: str
    ) -> list[dict[str, Any]]:
        """Return records whose *index_name* equals *value*.

        Order is engine insertion order, not chronological; callers that need
        chronological order sort on ``created_at``.
        """
        store = get_store_def(store_name)
        _check_index(store, index_name)
        rows = self._read(
            f"SELECT record FROM {store.name} WHERE {index_name} = ? ORDER BY rowid",
            (value,),
        ).fetchall()
        return [json.loads(r["record"]) for r in rows]

    def count_by_index(self, store_name: str, index_name: str, value: str) -> int:
        store = get_store_def(store_name)
        _check_index(store, index_name)
        return self._read(
            f"SELECT COUNT(*) FROM {store.name} WHERE {index_name} = ?", (value,)
        ).fetchone()[0]

    def delete_by_index(self, store_name: str, index_name: str, value: str) -> int:
        """Delete every record whose *index_name* equals *value*.

        Used for cascades only. Returns the number of records deleted.
        """
        store = get_store_def(store_name)
        _check_index(store, index_name)
        cur = self._write(f"DELETE FROM {store.name} WHERE {index_name} = ?", (value,))
        self._commit()
        return cur.rowcount

    def distinct_index_values(self, store_name: str, index_name: str) -> list[str]:
        """Return the distinct values present in *index_name*."""
        store = get_store_def(store_name)
        _check_index(store, index_name)
        rows = self._read(f"SELECT DISTINCT {index_name} FROM {store.name}").fetchall()
        return [r[0] for r in rows]

    def schema_version(self) -> int:
        """Return the applied migration version of this database."""
        try:
            return current_version(self._conn)
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"Read failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Engine calls
    # ------------------------------------------------------------------

    def _read(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"Read failed: {exc}") from exc

    def _write(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as exc:
            if not self.in_transaction:
                self._conn.rollback()
            raise StorageWriteError(f"Write failed: {exc}") from exc


def _check_index(store: ObjectStoreDef, index_name: str) -> None:
    if index_name not in store.indexes:
        raise ValueError(f"Object store '{store.name}' has no index '{index_name}'.")


# ------------------------------------------------------------------
# Process-wide handles
# ------------------------------------------------------------------


def open_store(db_path: Path | str) -> Store:
    """Return the process-wide Store for *db_path*, opening it on first use.

    Idempotent: later calls with the same (resolved) path return the same
    handle without re-running schema creation. ":memory:" is never shared;
    each call returns a fresh, isolated in-memory store.

    Raises:
        StorageUnavailable: If the engine cannot be initialised.
    """
    if str(db_path) == ":memory:":
        return Store.open(db_path)

    key = str(Path(db_path).expanduser().resolve())
    store = _handles.get(key)
    if store is None:
        store = Store.open(key)
        _handles[key] = store
        logger.debug("Opened database %s", key)
    return store


def close_all() -> None:
    """Close every process-wide handle (test teardown and CLI exit)."""
    while _handles:
        _, store = _handles.popitem()
        store.close()
