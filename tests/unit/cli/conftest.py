"""CLI test fixtures."""

from __future__ import annotations

import pytest

from inspo.cli.common import console


@pytest.fixture(autouse=True)
def _wide_console(monkeypatch):
    """Render tables without wrapping so assertions can match whole cells."""
    monkeypatch.setattr(console, "width", 200)
