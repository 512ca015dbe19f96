"""Logging setup: stdlib loggers under ``linearctl`` rendered by rich on stderr.

stdout is reserved for command output (tables, JSON), so warnings about skipped
names and retry chatter never corrupt ``--json`` output.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "linearctl"

stderr_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Attach a single RichHandler to the ``linearctl`` logger.

    Safe to call more than once; the level is updated and no duplicate handler is added.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=stderr_console,
            show_time=False,
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    return logger
