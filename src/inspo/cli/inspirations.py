"""inspo inspirations CLI commands.

Commands:
  inspo inspirations add <project-id> <url>   fetch metadata and save an inspiration
  inspo inspirations list <project-id>        a project's inspirations, oldest first
  inspo inspirations show <id>                full metadata for one inspiration
  inspo inspirations notes <id> <text>        replace the notes
  inspo inspirations refresh <id>             re-fetch the website metadata
  inspo inspirations remove <id>              delete one inspiration
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.panel import Panel
from rich.table import Table

from inspo.cli.common import DbOption, console, get_service, run
from inspo.cli.errors import warn_degraded_metadata
from inspo.db.models import OPTIONAL_METADATA_FIELDS, Inspiration

inspirations_app = typer.Typer(
    name="inspirations",
    help="Manage inspirations (add, list, show, notes, refresh, remove).",
    add_completion=False,
)


def inspirations_table(inspirations: list[Inspiration]) -> Table:
    table = Table(title="Inspirations", show_header=True, header_style="bold")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("URL")
    table.add_column("Notes")
    table.add_column("Added")

    for item in inspirations:
        meta = item.website_metadata
        title = meta.title or meta.og_title or "[dim](untitled)[/]"
        notes = item.notes if len(item.notes) <= 40 else item.notes[:39] + "…"
        table.add_row(item.id, title, meta.url, notes, item.created_at[:16])
    return table


@inspirations_app.command("add")
def inspirations_add_cmd(
    project_id: Annotated[str, typer.Argument(help="Project ID.")],
    url: Annotated[str, typer.Argument(help="Website URL (http:// or https://).")],
    screenshot: Annotated[
        str,
        typer.Option("--screenshot", "-s", help="Screenshot path or URI."),
    ] = "",
    notes: Annotated[
        str,
        typer.Option("--notes", "-n", help="Notes about this inspiration."),
    ] = "",
    db: DbOption = None,
) -> None:
    """Fetch website metadata for URL and add it to a project."""
    service = get_service(db)
    with console.status(f"Fetching {url}…"):
        inspiration = run(
            service.add_inspiration_from_url(project_id, url, screenshot=screenshot, notes=notes)
        )

    meta = inspiration.website_metadata
    if meta.is_degraded:
        console.print(warn_degraded_metadata(url))
    title = meta.title or meta.og_title or url
    console.print(f"[green]✓[/] Added [bold]{title}[/]  ({inspiration.id})")


@inspirations_app.command("list")
def inspirations_list_cmd(
    project_id: Annotated[str, typer.Argument(help="Project ID.")],
    db: DbOption = None,
) -> None:
    """List a project's inspirations, oldest first."""
    service = get_service(db)
    run(service.get_project(project_id))
    inspirations = run(service.list_inspirations_by_project(project_id))

    if not inspirations:
        console.print(
            "[yellow]No inspirations in this project yet.[/]\n"
            f"  Run:  inspo inspirations add {project_id} <url>"
        )
        raise typer.Exit(0)

    console.print(inspirations_table(inspirations))


@inspirations_app.command("show")
def inspirations_show_cmd(
    inspiration_id: Annotated[str, typer.Argument(help="Inspiration ID.")],
    db: DbOption = None,
) -> None:
    """Show an inspiration with all of its website metadata."""
    service = get_service(db)
    item = run(service.get_inspiration(inspiration_id))
    meta = item.website_metadata

    lines = [
        f"Project:     {item.project_id}",
        f"URL:         {meta.url}",
        f"Requested:   {meta.url_requested}",
        f"Resolved:    {meta.url_resolved or '[dim](not resolved)[/]'}",
    ]
    for name in OPTIONAL_METADATA_FIELDS:
        value = getattr(meta, name)
        if value is not None:
            lines.append(f"{name + ':':<13}{value}")
    for image in meta.og_image:
        size = f" ({image.width}×{image.height})" if image.width and image.height else ""
        lines.append(f"og:image:    {image.url}{size}")
    lines.append(f"Screenshot:  {item.screenshot or '[dim](none)[/]'}")
    lines.append(f"Notes:       {item.notes or '[dim](none)[/]'}")
    lines.append(f"Added:       {item.created_at}")
    lines.append(f"Updated:     {item.updated_at}")

    console.print(Panel("\n".join(lines), title=f"[bold]Inspiration {item.id}[/]", expand=False))


@inspirations_app.command("notes")
def inspirations_notes_cmd(
    inspiration_id: Annotated[str, typer.Argument(help="Inspiration ID.")],
    text: Annotated[str, typer.Argument(help="New notes (replaces the old ones).")],
    db: DbOption = None,
) -> None:
    """Replace an inspiration's notes."""
    service = get_service(db)
    run(service.update_inspiration(inspiration_id, notes=text))
    console.print("[green]✓[/] Notes updated")


@inspirations_app.command("refresh")
def inspirations_refresh_cmd(
    inspiration_id: Annotated[str, typer.Argument(help="Inspiration ID.")],
    db: DbOption = None,
) -> None:
    """Re-fetch the website metadata of an inspiration."""
    service = get_service(db)
    item = run(service.get_inspiration(inspiration_id))
    url = item.website_metadata.url_requested

    with console.status(f"Fetching {url}…"):
        meta = run(service.fetch_website_metadata(url))

    if meta.is_degraded:
        console.print(warn_degraded_metadata(url))
        raise typer.Exit(1)

    run(service.update_inspiration(inspiration_id, website_metadata=meta))
    console.print(f"[green]✓[/] Refreshed metadata for {url}")


@inspirations_app.command("remove")
def inspirations_remove_cmd(
    inspiration_id: Annotated[str, typer.Argument(help="Inspiration ID.")],
    db: DbOption = None,
) -> None:
    """Delete an inspiration (no error if it does not exist)."""
    service = get_service(db)
    run(service.delete_inspiration(inspiration_id))
    console.print(f"[green]✓[/] Removed: {inspiration_id}")
