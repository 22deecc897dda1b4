import logging

from rich.console import Console
from rich.logging import RichHandler

from backlog_cli.logging_setup import PACKAGE_LOGGER, configure_logging, debug_requested


def test_debug_requested_from_environment():
    assert debug_requested({"BACKLOG_DEBUG": "1"}) is True
    assert debug_requested({"BACKLOG_DEBUG": "yes"}) is True
    assert debug_requested({"BACKLOG_DEBUG": "0"}) is False
    assert debug_requested({}) is False


def test_configure_logging_levels():
    console = Console(record=True, width=120)
    configure_logging(console=console, force=True)
    logger = logging.getLogger(PACKAGE_LOGGER)

    assert logger.level == logging.WARNING
    assert any(isinstance(h, RichHandler) for h in logger.handlers)
    assert logger.propagate is False

    logging.getLogger("backlog_cli.reconcile.refs").debug("hidden detail")
    assert "hidden detail" not in console.export_text()

    configure_logging(debug=True)
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1

    logging.getLogger("backlog_cli.reconcile.refs").debug("shown detail")
    assert "shown detail" in console.export_text()


def teardown_function():
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
