"""Logging configuration with rich formatting."""

import logging
from typing import Union

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: Union[int, str] = logging.INFO, console: Console = None) -> None:
    """
    Route log records through a RichHandler.

    Args:
        level: Logging level, as a number or a name such as 'DEBUG'
        console: Console to render to (defaults to stderr)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(
            console=console or Console(stderr=True),
            rich_tracebacks=True,
            show_path=False,
        )],
        force=True,
    )
