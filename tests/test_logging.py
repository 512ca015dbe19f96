"""Tests for linearctl.logging."""

import logging

from rich.logging import RichHandler

from linearctl.logging import LOGGER_NAME, setup_logging


def test_single_handler_across_calls() -> None:
    setup_logging()
    logger = setup_logging(verbose=True)
    assert logger.name == LOGGER_NAME
    assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1


def test_verbose_levels() -> None:
    assert setup_logging(verbose=True).level == logging.DEBUG
    assert setup_logging(verbose=False).level == logging.WARNING
