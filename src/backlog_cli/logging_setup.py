"""Logging configuration for the Backlog CLI."""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

DEBUG_ENV = "BACKLOG_DEBUG"
PACKAGE_LOGGER = "backlog_cli"


def debug_requested(env: dict[str, str] | None = None) -> bool:
    value = (os.environ if env is None else env).get(DEBUG_ENV, "")
    return value.strip().lower() in {"1", "true", "yes"}


def configure_logging(*, debug: bool = False, console: Console | None = None, force: bool = False) -> None:
    """Attach a rich handler to the package logger once.

    Soft failures (network, skipped branches, malformed files) are logged at
    DEBUG and therefore only shown with ``--debug`` or ``BACKLOG_DEBUG=1``.
    Pass ``force=True`` to reconfigure during tests.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    if logger.handlers and not force:
        logger.setLevel(logging.DEBUG if debug else logging.WARNING)
        return

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=debug,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.propagate = False
