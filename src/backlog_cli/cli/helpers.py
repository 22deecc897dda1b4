"""Shared helpers for CLI commands."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from backlog_cli.config import ReconciliationConfig, find_config_path, load_config
from backlog_cli.errors import ReconcileError

console = Console()


def find_repo_root(start: Path | None = None) -> Path | None:
    """Walk upwards from ``start`` to the first directory holding a backlog config or ``.git``."""
    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if find_config_path(candidate) is not None or (candidate / ".git").exists():
            return candidate
    return None


def get_project_root_or_exit(start: Path | None = None) -> Path:
    root = find_repo_root(start)
    if root is None:
        console.print("[red]Error:[/red] Not inside a backlog project (no backlog/config.yml or .git found)")
        raise typer.Exit(1)
    return root


def load_reconciliation_config_or_exit(repo_root: Path, *, local_only: bool = False) -> ReconciliationConfig:
    """Load the project's reconciliation settings, exiting with a message on failure."""
    try:
        config = load_config(repo_root).reconciliation()
    except ReconcileError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)
    return config.local_only() if local_only else config
