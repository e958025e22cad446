"""Object store layout and initialization."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

PROJECTS = "projects"
INSPIRATIONS = "inspirations"


@dataclass(frozen=True)
class ObjectStoreDef:
    """A table acting as an object store.

    Attributes:
        name: Table name.
        key: Record field used as primary key.
        indexes: Record field names that have a secondary (non-unique) index.
            Each is stored in a column of the same name.
    """

    name: str
    key: str = "id"
    indexes: tuple[str, ...] = ()


OBJECT_STORES: dict[str, ObjectStoreDef] = {
    PROJECTS: ObjectStoreDef(PROJECTS),
    INSPIRATIONS: ObjectStoreDef(INSPIRATIONS, indexes=("project_id",)),
}

CURRENT_VERSION = 1


def get_store_def(store_name: str) -> ObjectStoreDef:
    """Return the definition for *store_name*.

    Raises:
        ValueError: If the store does not exist.
    """
    try:
        return OBJECT_STORES[store_name]
    except KeyError:
        raise ValueError(
            f"Unknown object store '{store_name}'. Known: {', '.join(sorted(OBJECT_STORES))}"
        ) from None


def initialize(conn: sqlite3.Connection) -> None:
    """Initialize the database schema via the migration runner (idempotent)."""
    from inspo.db.migrations import run_migrations

    run_migrations(conn)
