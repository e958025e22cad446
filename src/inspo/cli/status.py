"""inspo status command.

Shows the database location, schema version, record counts and orphaned
inspirations (those left behind by a non-transactional delete in an older
database). ``--purge-orphans`` removes them.
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.panel import Panel

from inspo.cli.common import (
    DbOption,
    console,
    get_service,
    load_cli_config,
    reporting_errors,
    run,
)
from inspo.cli.errors import warn_orphans
from inspo.db.schema import INSPIRATIONS, PROJECTS


def status_cmd(
    purge_orphans: Annotated[
        bool,
        typer.Option("--purge-orphans", help="Delete inspirations whose project is gone."),
    ] = False,
    db: DbOption = None,
) -> None:
    """Show database status: location, schema version, counts."""
    db_path = db if db is not None else load_cli_config(None).database.path
    if not db_path.exists():
        console.print(
            Panel(
                f"[yellow]No database at {db_path}.[/]\n"
                "  Run:  inspo projects create <name>  to start one.",
                title="[bold]Database[/]",
                expand=False,
            )
        )
        raise typer.Exit(0)

    service = get_service(db_path)
    store = service.store
    overviews = run(service.list_project_overviews())
    with reporting_errors():
        total_inspirations = len(store.get_all(INSPIRATIONS))
        total_projects = len(store.get_all(PROJECTS))
        schema = store.schema_version()
    owned = sum(o.inspiration_count for o in overviews)
    orphans = total_inspirations - owned

    size_mb = db_path.stat().st_size / (1024 * 1024)
    lines = [
        f"Database:     {db_path} ({size_mb:.1f} MB)",
        f"Schema:       v{schema}",
        f"Projects:     [bold]{total_projects}[/]",
        f"Inspirations: [bold]{total_inspirations}[/]",
    ]
    if overviews:
        latest = overviews[0].project
        lines.append(f"Latest:       {latest.name} [dim]({latest.created_at[:16]})[/]")
    console.print(Panel("\n".join(lines), title="[bold]Database[/]", expand=False))

    if orphans:
        if purge_orphans:
            removed = run(service.purge_orphans())
            console.print(f"[green]✓[/] Purged {removed} orphaned inspiration(s)")
        else:
            console.print(warn_orphans(orphans))
