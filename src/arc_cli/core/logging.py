"""Logging setup.

Diagnostics go to stderr through rich so they never mix with rendered output.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_CONFIGURED = False


def configure_logging(level: str = "WARNING", *, verbose: bool = False) -> None:
    """Install a stderr `RichHandler` on the `arc_cli` logger (idempotent)."""

    global _CONFIGURED
    lvl = logging.DEBUG if verbose else logging.getLevelName(level.upper())
    if not isinstance(lvl, int):
        lvl = logging.WARNING

    logger = logging.getLogger("arc_cli")
    logger.setLevel(lvl)
    if _CONFIGURED:
        return
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    _CONFIGURED = True
