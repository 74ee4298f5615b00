"""Logging configuration for rabot."""

import logging
from enum import IntEnum

from rich.console import Console
from rich.logging import RichHandler


class LogLevel(IntEnum):
    """Log level enumeration."""

    QUIET = logging.WARNING
    NORMAL = logging.INFO
    VERBOSE = logging.DEBUG


def resolve_level(verbosity: int = 0, quiet: bool = False, debug: bool = False) -> int:
    """Map CLI flags to a logging level.

    Flag precedence is quiet > debug > verbosity.
    """
    if quiet:
        return LogLevel.QUIET
    if debug or verbosity >= 1:
        return LogLevel.VERBOSE
    return LogLevel.NORMAL


def configure_logging(
    verbosity: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    debug: bool = False,
) -> Console:
    """Configure logging based on CLI options.

    Args:
        verbosity: Number of -v flags (0=normal, 1+=debug)
        quiet: Only warnings and errors (takes precedence over debug/verbosity)
        no_color: Disable colored output
        debug: Enable debug logging with timestamps and source paths

    Returns:
        Rich console bound to stderr, shared by log records and user messages
    """
    level = resolve_level(verbosity, quiet, debug)
    detailed = debug or verbosity >= 2

    console = Console(
        stderr=True,
        no_color=no_color,
        highlight=False,
    )

    handler = RichHandler(
        console=console,
        show_time=detailed,
        show_path=detailed,
    )

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[handler],
    )
    logging.getLogger("rabot").setLevel(level)

    return console
