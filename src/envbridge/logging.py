"""Logging configuration for envbridge.

Everything here writes to stderr. Standard output is reserved for the
generated fish statements so it can be piped into ``source``.
"""

from __future__ import annotations

import logging
from typing import Literal

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

# Diagnostics only ever go to stderr
err_console = Console(stderr=True)


def setup_logging(
    verbosity: Literal["quiet", "normal", "verbose"] = "normal",
) -> logging.Logger:
    """Configure logging based on verbosity level."""
    logger = logging.getLogger("envbridge")

    # Clear existing handlers
    logger.handlers.clear()

    level_map = {
        "quiet": logging.ERROR,
        "normal": logging.INFO,
        "verbose": logging.DEBUG,
    }
    logger.setLevel(level_map[verbosity])

    handler = RichHandler(
        console=err_console,
        show_time=verbosity == "verbose",
        show_path=verbosity == "verbose",
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Get the envbridge logger, or one of its children."""
    if name is None:
        return logging.getLogger("envbridge")
    return logging.getLogger(f"envbridge.{name}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)


def print_warning(message: str) -> None:
    """Print a warning message to stderr."""
    err_console.print(f"[yellow]Warning:[/yellow] {escape(message)}", highlight=False)


def print_info(message: str) -> None:
    """Print an info message to stderr."""
    err_console.print(escape(message), highlight=False)
