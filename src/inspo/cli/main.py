"""inspo CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from inspo.cli.inspirations import inspirations_app
from inspo.cli.projects import projects_app
from inspo.cli.status import status_cmd


def _version() -> str:
    try:
        return importlib.metadata.version("inspo")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"inspo {_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="inspo",
    help=(
        "inspo: collect design inspiration into projects.\n\n"
        "  inspo projects      Create, list, update and delete projects.\n"
        "  inspo inspirations  Save websites (metadata + screenshot + notes) into a project."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """inspo: collect design inspiration into projects."""


app.add_typer(projects_app, name="projects")
app.add_typer(inspirations_app, name="inspirations")
app.command("status")(status_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed inspo version."""
    typer.echo(f"inspo {_version()}")


if __name__ == "__main__":
    app()
