"""Error hierarchy for rabot.

Every fatal condition is a ``RabotError``. The controller (CLI callback or
``session()``) prints its message as one line on stderr and exits with
``exit_code``.
"""


class RabotError(Exception):
    """Base exception for fatal rabot errors."""

    exit_code = 1


class PrerequisiteError(RabotError):
    """A required tool, directory or platform feature is unavailable."""


class AcquisitionError(RabotError):
    """A resource acquisition step failed."""


class LockError(AcquisitionError):
    """A named lock could not be obtained under its wait policy."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name


class CommandError(RabotError):
    """An external command could not be run to completion."""
