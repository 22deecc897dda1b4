"""Typer application for the ``backlog`` command."""

from __future__ import annotations

import typer

from backlog_cli import __version__
from backlog_cli.cli.commands.board import board
from backlog_cli.cli.commands.ids import next_id
from backlog_cli.cli.commands.locate import locate
from backlog_cli.cli.helpers import console
from backlog_cli.logging_setup import configure_logging, debug_requested

app = typer.Typer(
    name="backlog",
    help="Git-backed task backlog with a view reconciled across branches.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"backlog {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    debug: bool = typer.Option(
        False, "--debug", help="Show soft failures (network, skipped branches, malformed files)"
    ),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    configure_logging(debug=debug or debug_requested())


app.command("board")(board)
app.command("next-id")(next_id)
app.command("locate")(locate)


__all__ = ["app", "main"]
