"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from inspo.db.connection import Database
from inspo.db.schema import initialize
from inspo.db.store import Store, close_all
from inspo.service import InspirationService


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / "inspo.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def store(tmp_db, tmp_path):
    return Store(tmp_db, tmp_path / "inspo.db")


@pytest.fixture
def service(store):
    return InspirationService(store)


@pytest.fixture(autouse=True)
def _close_process_handles():
    """Release process-wide handles opened via open_store() during a test."""
    yield
    close_all()


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path):
    """Keep tests away from the real ~/.inspo and any INSPO_* variables."""
    for var in ("INSPO_DB_PATH", "INSPO_LATENCY_MS", "INSPO_ENRICH_MODEL", "INSPO_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("inspo.config._GLOBAL_CONFIG_PATH", tmp_path / "global" / "config.yaml")
    monkeypatch.chdir(tmp_path)
