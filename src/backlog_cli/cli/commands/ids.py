"""next-id command - print the next free id without creating anything."""

from __future__ import annotations

from typing import Optional

import typer

from backlog_cli.cli.helpers import console, get_project_root_or_exit, load_reconciliation_config_or_exit
from backlog_cli.entities.models import EntityKind
from backlog_cli.errors import ReconcileError
from backlog_cli.reconcile.view import ReconciledViewBuilder


def next_id(
    kind: EntityKind = typer.Argument(EntityKind.TASK, help="Id space: task, doc or decision"),
    parent: Optional[str] = typer.Option(
        None, "--parent", "-p", help="Parent task id; allocates a sub-task id"
    ),
    local_only: bool = typer.Option(
        False, "--local-only", help="Only consider ids in the working tree"
    ),
) -> None:
    """Print the next id that is unused on every known branch."""
    repo_root = get_project_root_or_exit()
    config = load_reconciliation_config_or_exit(repo_root, local_only=local_only)
    allocator = ReconciledViewBuilder.for_repository(repo_root, config).id_allocator()

    try:
        with console.status("Scanning branches for ids") as status:
            allocated = allocator.allocate_next_id_sync(kind, parent, progress=lambda msg: status.update(msg))
    except (ReconcileError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    console.print(allocated, highlight=False)
