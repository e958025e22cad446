"""inspo database layer."""

from inspo.db.connection import Database
from inspo.db.migrations import MIGRATIONS, run_migrations
from inspo.db.schema import INSPIRATIONS, OBJECT_STORES, PROJECTS, initialize
from inspo.db.store import Store, close_all, open_store

__all__ = [
    "Database",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "OBJECT_STORES",
    "PROJECTS",
    "INSPIRATIONS",
    "Store",
    "open_store",
    "close_all",
]
