"""inspo projects CLI commands.

Commands:
  inspo projects create <name>   create a project
  inspo projects list            all projects with inspiration counts
  inspo projects show <id>       one project and its inspirations
  inspo projects update <id>     rename / redescribe a project
  inspo projects delete <id>     delete a project and its inspirations
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.panel import Panel
from rich.table import Table

from inspo.cli.common import DbOption, console, get_service, run
from inspo.cli.inspirations import inspirations_table

projects_app = typer.Typer(
    name="projects",
    help="Manage projects (create, list, show, update, delete).",
    add_completion=False,
)


@projects_app.command("create")
def projects_create_cmd(
    name: Annotated[str, typer.Argument(help="Project name.")],
    description: Annotated[
        str,
        typer.Option("--description", "-d", help="Optional description."),
    ] = "",
    db: DbOption = None,
) -> None:
    """Create a new project."""
    service = get_service(db)
    project = run(service.create_project(name, description))
    console.print(f"[green]✓[/] Created project [bold]{project.name}[/]  ({project.id})")


@projects_app.command("list")
def projects_list_cmd(
    oldest_first: Annotated[
        bool,
        typer.Option("--oldest-first", help="Sort oldest project first."),
    ] = False,
    db: DbOption = None,
) -> None:
    """List all projects with their inspiration counts."""
    service = get_service(db)
    overviews = run(service.list_project_overviews(newest_first=not oldest_first))

    if not overviews:
        console.print(
            "[yellow]No projects yet.[/]\n"
            "  Run:  inspo projects create <name>"
        )
        raise typer.Exit(0)

    table = Table(title="Projects", show_header=True, header_style="bold")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Inspirations", justify="right")
    table.add_column("Created")

    for overview in overviews:
        p = overview.project
        table.add_row(p.id, p.name, str(overview.inspiration_count), p.created_at[:16])

    console.print(table)


@projects_app.command("show")
def projects_show_cmd(
    project_id: Annotated[str, typer.Argument(help="Project ID.")],
    db: DbOption = None,
) -> None:
    """Show a project and its inspirations (oldest first)."""
    service = get_service(db)
    project = run(service.get_project(project_id))
    inspirations = run(service.list_inspirations_by_project(project_id))

    lines = [
        f"Name:         [bold]{project.name}[/]",
        f"Description:  {project.description or '[dim](none)[/]'}",
        f"Created:      {project.created_at}",
        f"Updated:      {project.updated_at}",
        f"Inspirations: [bold]{len(inspirations)}[/]",
    ]
    console.print(Panel("\n".join(lines), title=f"[bold]Project {project.id}[/]", expand=False))
    if inspirations:
        console.print(inspirations_table(inspirations))


@projects_app.command("update")
def projects_update_cmd(
    project_id: Annotated[str, typer.Argument(help="Project ID.")],
    name: Annotated[
        str | None,
        typer.Option("--name", "-n", help="New project name."),
    ] = None,
    description: Annotated[
        str | None,
        typer.Option("--description", "-d", help="New description."),
    ] = None,
    db: DbOption = None,
) -> None:
    """Rename a project or change its description."""
    if name is None and description is None:
        console.print("[yellow]Nothing to update.[/] Pass --name and/or --description.")
        raise typer.Exit(1)

    service = get_service(db)
    project = run(service.update_project(project_id, name=name, description=description))
    console.print(f"[green]✓[/] Updated project [bold]{project.name}[/]")


@projects_app.command("delete")
def projects_delete_cmd(
    project_id: Annotated[str, typer.Argument(help="Project ID.")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    db: DbOption = None,
) -> None:
    """Delete a project and every inspiration in it."""
    service = get_service(db)
    overview = next(
        (o for o in run(service.list_project_overviews()) if o.project.id == project_id),
        None,
    )

    if overview is None:
        console.print(f"[dim]Project '{project_id}' does not exist; nothing to delete.[/]")
        raise typer.Exit(0)

    console.print(f"\nDelete project: [bold]{overview.project.name}[/]")
    console.print(f"  Inspirations: {overview.inspiration_count}")

    if not yes:
        if not typer.confirm("Confirm deletion?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)

    removed = run(service.delete_project(project_id))
    console.print(f"\n[green]✓[/] Deleted: {overview.project.name}")
    console.print(f"  {removed} inspiration(s) deleted")
