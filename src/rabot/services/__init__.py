"""External service integrations for rabot.

- commands: running wrapped tools (openssl, tar, zip, find, grep, ...)
"""

from .commands import require_tool, run_command, tee_command

__all__ = [
    "require_tool",
    "run_command",
    "tee_command",
]
