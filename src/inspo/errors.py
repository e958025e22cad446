"""Domain exceptions shared by the store, the service layer and the CLI.

Store failures (StorageUnavailable, StorageWriteError) are raised at the
sqlite3 boundary and propagate unchanged through the service layer.
"""

from __future__ import annotations


class InspoError(Exception):
    """Base class for all inspo errors."""


class ValidationError(InspoError, ValueError):
    """Caller-supplied input violates a field constraint (e.g. empty name)."""


class NotFoundError(InspoError, LookupError):
    """A referenced project or inspiration does not exist.

    Attributes:
        kind: Record kind ("project" or "inspiration").
        record_id: The identifier that was looked up.
    """

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind.capitalize()} '{record_id}' not found.")
        self.kind = kind
        self.record_id = record_id


class StorageError(InspoError):
    """Underlying storage engine failure."""


class StorageUnavailable(StorageError):
    """The database could not be opened or initialised."""


class StorageWriteError(StorageError):
    """A write was rejected by the engine (disk full, read-only file, corruption)."""
