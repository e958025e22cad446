"""Tests for inspo inspirations commands (metadata fetch mocked)."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

from inspo.cli.main import app
from inspo.db.models import Inspiration, Project, WebsiteMetadata
from inspo.db.store import Store
from inspo.scrape.metadata import FetchError, MetadataScraper, ScrapeResult
from inspo.service import InspirationService

runner = CliRunner()

_URL = "https://studio.example"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _with_service(db_path: Path, fn):
    store = Store.open(db_path)
    try:
        return asyncio.run(fn(InspirationService(store)))
    finally:
        store.close()


def _project(db_path: Path) -> Project:
    return _with_service(db_path, lambda s: s.create_project("Portfolio"))


def _inspiration(db_path: Path, project_id: str, **kwargs) -> Inspiration:
    meta = kwargs.pop("metadata", WebsiteMetadata.degraded(_URL))
    return _with_service(
        db_path, lambda s: s.create_inspiration(project_id, meta, **kwargs)
    )


def _scraped(title: str = "Studio Folio") -> ScrapeResult:
    meta = WebsiteMetadata(
        url=_URL + "/",
        url_requested=_URL,
        url_resolved=_URL + "/",
        title=title,
        description="Selected work.",
    )
    return ScrapeResult(metadata=meta, text="Selected work.")


def _mock_scrape(**kwargs):
    return patch.object(MetadataScraper, "scrape", **kwargs)


# ---------------------------------------------------------------------------
# add
# ---------------------------------------------------------------------------


def test_add_inspiration(tmp_path: Path) -> None:
    db_path = tmp_path / "inspo.db"
    project = _project(db_path)

    with _mock_scrape(return_value=_scraped()):
        result = runner.invoke(
            app,
            ["inspirations", "add", project.id, _URL, "-s", "shots/1.png", "-n", "Grid",
             "--db", str(db_path)],
        )

    assert result.exit_code == 0
    assert "Added Studio Folio" in result.output
    [item] = _with_service(db_path, lambda s: s.list_inspirations_by_project(project.id))
    assert item.website_metadata.title == "Studio Folio"
    assert item.screenshot == "shots/1.png"
    assert item.notes == "Grid"


def test_add_with_failed_fetch_saves_degraded(tmp_path: Path) -> None:
    db_path = tmp_path / "inspo.db"
    project = _project(db_path)

    with _mock_scrape(side_effect=FetchError("connection refused")):
        result = runner.invoke(app, ["inspirations", "add", project.id, _URL, "--db", str(db_path)])

    assert result.exit_code == 0
    assert "Could not fetch metadata" in result.output
    [item] = _with_service(db_path, lambda s: s.list_inspirations_by_project(project.id))
    assert item.website_metadata.is_degraded
    assert item.website_metadata.url_requested == _URL


def test_add_to_missing_project_fails(tmp_path: Path) -> None:
    db_path = tmp_path / "inspo.db"
    with _mock_scrape(return_value=_scraped()) as scrape:
        result = runner.invoke(app, ["inspirations", "add", "nope", _URL, "--db", str(db_path)])
    assert result.exit_code == 1
    assert "Project 'nope' not found" in result.output
    scrape.assert_not_called()


def test_add_bad_scheme_fails(tmp_path: Path) -> None:
    db_path = tmp_path / "inspo.db"
    project = _project(db_path)
    result = runner.invoke(
        app, ["inspirations", "add", project.id, "ftp://studio.example", "--db", str(db_path)]
    )
    assert result.exit_code == 1
    assert "scheme" in result.output
    assert _with_service(db_path, lambda s: s.list_inspirations_by_project(project.id)) == []


# ---------------------------------------------------------------------------
# list / show
# ---------------------------------------------------------------------------


def test_list_inspirations(tmp_path: Path) -> None:
    db_path = tmp_path / "inspo.db"
    project = _project(db_path)
    _inspiration(db_path, project.id, notes="Nice grid")

    result = runner.invoke(app, ["inspirations", "list", project.id, "--db", str(db_path)])
    assert result.exit_code == 0
    assert "studio.example" in result.output
    assert "Nice grid" in result.output


def test_list_empty_project(tmp_path: Path) -> None:
    db_path = tmp_path / "inspo.db"
    project = _project(db_path)
    result = runner.invoke(app, ["inspirations", "list", project.id, "--db", str(db_path)])
    assert result.exit_code == 0
    assert "No inspirations in this project yet" in result.output


def test_list_missing_project(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["inspirations", "list", "nope", "--db", str(tmp_path / "inspo.db")]
    )
    assert result.exit_code == 1
    assert "not found" in result.output


def test_show_inspiration(tmp_path: Path) -> None:
    db_path = tmp_path / "inspo.db"
    project = _project(db_path)
    item = _inspiration(db_path, project.id, metadata=_scraped().metadata, notes="Typography")

    result = runner.invoke(app, ["inspirations", "show", item.id, "--db", str(db_path)])
    assert result.exit_code == 0
    assert "Studio Folio" in result.output
    assert "Selected work." in result.output
    assert "Typography" in result.output


def test_show_missing_inspiration(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["inspirations", "show", "nope", "--db", str(tmp_path / "inspo.db")]
    )
    assert result.exit_code == 1
    assert "Inspiration 'nope' not found" in result.output


# ---------------------------------------------------------------------------
# notes / refresh / remove
# ---------------------------------------------------------------------------


def test_notes_replaces_text(tmp_path: Path) -> None:
    db_path = tmp_path / "inspo.db"
    project = _project(db_path)
    item = _inspiration(db_path, project.id, notes="old")

    result = runner.invoke(app, ["inspirations", "notes", item.id, "new", "--db", str(db_path)])
    assert result.exit_code == 0
    assert _with_service(db_path, lambda s: s.get_inspiration(item.id)).notes == "new"


def test_refresh_updates_metadata(tmp_path: Path) -> None:
    db_path = tmp_path / "inspo.db"
    project = _project(db_path)
    item = _inspiration(db_path, project.id)

    with _mock_scrape(return_value=_scraped("Fresh Title")) as scrape:
        result = runner.invoke(app, ["inspirations", "refresh", item.id, "--db", str(db_path)])

    assert result.exit_code == 0
    scrape.assert_called_once_with(_URL)
    refreshed = _with_service(db_path, lambda s: s.get_inspiration(item.id))
    assert refreshed.website_metadata.title == "Fresh Title"
    assert refreshed.created_at == item.created_at


def test_refresh_failure_keeps_old_metadata(tmp_path: Path) -> None:
    db_path = tmp_path / "inspo.db"
    project = _project(db_path)
    item = _inspiration(db_path, project.id, metadata=_scraped("Kept").metadata)

    with _mock_scrape(side_effect=FetchError("timeout")):
        result = runner.invoke(app, ["inspirations", "refresh", item.id, "--db", str(db_path)])

    assert result.exit_code == 1
    assert "Could not fetch metadata" in result.output
    kept = _with_service(db_path, lambda s: s.get_inspiration(item.id))
    assert kept.website_metadata.title == "Kept"


def test_remove_inspiration(tmp_path: Path) -> None:
    db_path = tmp_path / "inspo.db"
    project = _project(db_path)
    item = _inspiration(db_path, project.id)

    result = runner.invoke(app, ["inspirations", "remove", item.id, "--db", str(db_path)])
    assert result.exit_code == 0
    assert _with_service(db_path, lambda s: s.list_inspirations_by_project(project.id)) == []


def test_remove_missing_is_noop(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["inspirations", "remove", "nope", "--db", str(tmp_path / "inspo.db")]
    )
    assert result.exit_code == 0
