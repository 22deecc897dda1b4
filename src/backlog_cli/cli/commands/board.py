"""Board command - show the reconciled view of one lifecycle category."""

from __future__ import annotations

import json as json_mod
from collections import defaultdict

import typer
from rich.table import Table

from backlog_cli.cli.helpers import console, get_project_root_or_exit, load_reconciliation_config_or_exit
from backlog_cli.entities.models import Category, MergedEntity
from backlog_cli.errors import ReconcileError
from backlog_cli.reconcile.view import ReconciledViewBuilder


def _build_table(entities: list[MergedEntity], statuses: tuple[str, ...], title: str) -> Table:
    """One column per configured status, plus one for statuses outside the order."""
    columns: dict[str, list[str]] = defaultdict(list)
    for entity in entities:
        label = f"{entity.id} {entity.canonical_record.fields.get('title', '')}".strip()
        if not entity.canonical_record.is_local:
            label += f" [dim]({entity.canonical_record.branch})[/dim]"
        columns[entity.status if entity.status in statuses else "Other"].append(label)

    headers = list(statuses) + (["Other"] if "Other" in columns else [])
    table = Table(title=title, show_header=True, show_lines=False)
    for header in headers:
        table.add_column(header, style="cyan" if header != "Other" else "yellow")

    depth = max((len(columns[h]) for h in headers), default=0)
    for row in range(depth):
        table.add_row(*(columns[h][row] if row < len(columns[h]) else "" for h in headers))
    return table


def board(
    category: Category = typer.Option(
        Category.ACTIVE, "--category", "-c", help="Lifecycle category to show"
    ),
    local_only: bool = typer.Option(
        False, "--local-only", help="Ignore other branches and the remote"
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Print the reconciled entities as JSON"
    ),
) -> None:
    """Show tasks merged across every branch, in their latest known category.

    Examples:
        # Active tasks, merged from all local and remote branches
        backlog board

        # Archived tasks without touching the network
        backlog board --category archived --local-only
    """
    repo_root = get_project_root_or_exit()
    config = load_reconciliation_config_or_exit(repo_root, local_only=local_only)
    builder = ReconciledViewBuilder.for_repository(repo_root, config)

    try:
        if json_output:
            entities = builder.reconcile_sync(category)
        else:
            with console.status("Loading board") as status:
                entities = builder.reconcile_sync(category, progress=lambda msg: status.update(msg))
    except ReconcileError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    if json_output:
        console.print_json(json_mod.dumps([entity.to_dict() for entity in entities]))
        return

    if not entities:
        console.print(f"No {category.value} tasks found.")
        return

    console.print(_build_table(entities, config.status_order, f"{category.value.title()} tasks"))
