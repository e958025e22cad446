"""Logging setup for the inspo CLI.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once, by the entry point.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_ROOT_LOGGER = "inspo"


def setup_logging(level: str = "WARNING", console: Console | None = None) -> logging.Logger:
    """Attach a RichHandler (stderr) to the ``inspo`` logger at *level*.

    Calling it again replaces the previous handler instead of stacking.
    """
    logger = logging.getLogger(_ROOT_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    logger.propagate = False
    return logger
