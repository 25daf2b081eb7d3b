"""Diagnostic logging.

User-facing progress is printed by the CLI; this module only configures the
stdlib loggers used for request-level diagnostics. Records go to stderr so
that relayed workflow logs on stdout stay clean.
"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

_ROOT = "workflow_relay"


def configure_logging(verbose: bool = False) -> None:
    """Attach a rich handler to the package logger.

    `verbose` forces DEBUG; otherwise `WORKFLOW_RELAY_LOG_LEVEL` (default
    WARNING) decides.
    """

    level_name = "DEBUG" if verbose else os.getenv("WORKFLOW_RELAY_LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)

    logger = logging.getLogger(_ROOT)
    logger.setLevel(level)
    logger.handlers.clear()
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get logger for specific module."""

    if not name.startswith(f"{_ROOT}."):
        name = f"{_ROOT}.{name}"
    return logging.getLogger(name)
