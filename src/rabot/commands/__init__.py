"""CLI command implementations for rabot.

Each command is a thin wrapper: argument parsing and defaults here, the
actual work in external tools run through ``rabot.services``.
"""

from .archive import archive
from .crypt import decrypt, encrypt
from .init import init
from .locked import locked, once
from .logrun import logrun
from .search import ff, gr

__all__ = [
    "archive",
    "decrypt",
    "encrypt",
    "ff",
    "gr",
    "init",
    "locked",
    "logrun",
    "once",
]
