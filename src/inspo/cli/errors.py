"""inspo rich error messages: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from inspo.cli.errors import err_project_not_found
    console.print(err_project_not_found(project_id))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_project_not_found(project_id: str) -> str:
    """Project id does not exist."""
    return (
        f"[red]Error:[/] Project '{project_id}' not found.\n"
        "  Run:  inspo projects list  to see all projects."
    )


def err_inspiration_not_found(inspiration_id: str) -> str:
    """Inspiration id does not exist."""
    return (
        f"[red]Error:[/] Inspiration '{inspiration_id}' not found.\n"
        "  Run:  inspo inspirations list <project-id>  to see a project's inspirations."
    )


def err_validation(message: str) -> str:
    """Caller input was rejected."""
    return (
        f"[red]Error:[/] {message}\n"
        "  Fix the value and run the command again."
    )


def err_storage(message: str) -> str:
    """The local database could not be opened or written."""
    return (
        f"[red]Error:[/] Storage failure: {message}\n"
        "  Check that the database directory is writable and the disk is not full,\n"
        "  or use:  --db <path>  to point at another database file."
    )


def err_config(message: str) -> str:
    """A config file or INSPO_* variable is invalid."""
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {message}\n"
        "  Fix inspo.yaml / ~/.inspo/config.yaml or unset the INSPO_* variable."
    )


def warn_degraded_metadata(url: str) -> str:
    """Metadata could not be fetched; a minimal record was stored."""
    return (
        f"[yellow]⚠[/] Could not fetch metadata for '{url}'. Saved with the URL only.\n"
        "  Run:  inspo inspirations refresh <inspiration-id>  to try again later."
    )


def warn_orphans(count: int) -> str:
    """Inspirations without a project were found."""
    return (
        f"[yellow]⚠[/] {count} inspiration(s) belong to a deleted project.\n"
        "  Run:  inspo status --purge-orphans  to remove them."
    )
