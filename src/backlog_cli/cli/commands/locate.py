"""locate command - report where each task most recently lived."""

from __future__ import annotations

from typing import List

import typer
from rich.table import Table

from backlog_cli.cli.helpers import console, get_project_root_or_exit, load_reconciliation_config_or_exit
from backlog_cli.errors import ReconcileError
from backlog_cli.reconcile.view import ReconciledViewBuilder


def locate(
    ids: List[str] = typer.Argument(..., help="Task ids, e.g. task-3"),
    local_only: bool = typer.Option(
        False, "--local-only", help="Ignore other branches and the remote"
    ),
) -> None:
    """Show the latest category of each task across all branches."""
    repo_root = get_project_root_or_exit()
    config = load_reconciliation_config_or_exit(repo_root, local_only=local_only)
    builder = ReconciledViewBuilder.for_repository(repo_root, config)
    wanted = [entity_id.strip().lower() for entity_id in ids]

    try:
        with console.status("Resolving locations") as status:
            locations = builder.resolve_locations_sync(wanted, progress=lambda msg: status.update(msg))
    except ReconcileError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    table = Table(show_header=True)
    table.add_column("ID", style="cyan")
    table.add_column("Category", style="green")
    for entity_id in wanted:
        category = locations.get(entity_id)
        table.add_row(entity_id, category.value if category else "[yellow]not found[/yellow]")
    console.print(table)
