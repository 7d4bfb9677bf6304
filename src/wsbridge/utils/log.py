"""Logging setup for the CLI entrypoints.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once, by whichever command starts the process. Output goes
to stderr because stdout carries the stdio transport.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_FORMAT = "%(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Route ``wsbridge`` logs through a rich handler on stderr."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter(_FORMAT))

    package_logger = logging.getLogger("wsbridge")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(level.upper())


def truncate(text: str, max_len: int = 100) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
