"""Tests for logging configuration."""

import logging

from rabot.logging import LogLevel, configure_logging, resolve_level


def test_default_level() -> None:
    assert resolve_level() == LogLevel.NORMAL


def test_verbose_is_debug() -> None:
    assert resolve_level(verbosity=1) == logging.DEBUG
    assert resolve_level(verbosity=3) == logging.DEBUG


def test_quiet_wins() -> None:
    assert resolve_level(verbosity=2, quiet=True, debug=True) == LogLevel.QUIET


def test_debug_flag() -> None:
    assert resolve_level(debug=True) == logging.DEBUG


def test_configure_returns_stderr_console() -> None:
    console = configure_logging(quiet=True, no_color=True)
    assert console.stderr
    assert logging.getLogger("rabot").level == logging.WARNING
