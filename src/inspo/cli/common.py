"""Shared CLI plumbing: config + service construction and error reporting."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer
from rich.console import Console

from inspo.cli.errors import (
    err_config,
    err_inspiration_not_found,
    err_project_not_found,
    err_storage,
    err_validation,
)
from inspo.config import ConfigError, InspoConfig, load_config
from inspo.errors import NotFoundError, StorageError, ValidationError
from inspo.log import setup_logging
from inspo.service import InspirationService

console = Console()

DbOption = Annotated[
    Path | None,
    typer.Option("--db", help="Path to the inspo database (default from config)."),
]

T = TypeVar("T")


def load_cli_config(db: Path | None) -> InspoConfig:
    """Load config, apply the --db override, and install logging."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    if db is not None:
        cfg.database.path = db
    setup_logging(cfg.logging.level)
    return cfg


def get_service(db: Path | None) -> InspirationService:
    """Build the service for *db* (or the configured database)."""
    cfg = load_cli_config(db)
    with reporting_errors():
        return InspirationService.from_config(cfg)


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a service coroutine, reporting domain errors as CLI errors."""
    with reporting_errors():
        return asyncio.run(coro)


@contextmanager
def reporting_errors() -> Iterator[None]:
    """Translate inspo exceptions into rich messages and exit code 1."""
    try:
        yield
    except NotFoundError as exc:
        if exc.kind == "project":
            console.print(err_project_not_found(exc.record_id))
        else:
            console.print(err_inspiration_not_found(exc.record_id))
        raise typer.Exit(1)
    except ValidationError as exc:
        console.print(err_validation(str(exc)))
        raise typer.Exit(1)
    except StorageError as exc:
        console.print(err_storage(str(exc)))
        raise typer.Exit(1)
