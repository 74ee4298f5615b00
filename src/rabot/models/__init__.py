"""Pydantic data models for rabot.

- Cleanup outcomes and reports (UndoOutcome, CleanupReport)
- Lock wait policies and states (WaitPolicy, WaitMode, LockState)
- External command results (CommandResult)
"""

from .cleanup import CleanupReport, UndoOutcome
from .command import CommandResult
from .lock import LockState, WaitMode, WaitPolicy

__all__ = [
    "CleanupReport",
    "CommandResult",
    "LockState",
    "UndoOutcome",
    "WaitMode",
    "WaitPolicy",
]
