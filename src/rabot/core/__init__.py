"""Core logic for rabot.

- cleanup: exit-time LIFO undo stack and script sessions
- lock_manager: named flock-based locks and single-instance guard
- paths: timestamped names and directory helpers
"""

from .cleanup import CleanupStack, UndoAction, session
from .lock_manager import (
    INSTANCE_MODE_BLOCK,
    INSTANCE_MODE_FAIL,
    FileLock,
    acquire_lock,
    instance_lock_name,
    lock_path,
    one_instance,
)
from .paths import ensure_directory, resolve_program, strip_suffix, timestamp, timestamped_name

__all__ = [
    "INSTANCE_MODE_BLOCK",
    "INSTANCE_MODE_FAIL",
    "CleanupStack",
    "FileLock",
    "UndoAction",
    "acquire_lock",
    "ensure_directory",
    "instance_lock_name",
    "lock_path",
    "one_instance",
    "resolve_program",
    "session",
    "strip_suffix",
    "timestamp",
    "timestamped_name",
]
