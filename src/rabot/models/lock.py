"""Lock wait policy and state models."""

from enum import Enum

from pydantic import BaseModel, Field


class WaitMode(str, Enum):
    """How long an acquisition attempt may block."""

    INDEFINITE = "indefinite"
    IMMEDIATE = "immediate"
    BOUNDED = "bounded"


class LockState(str, Enum):
    """Lifecycle of a named lock: unacquired -> held -> released."""

    UNACQUIRED = "unacquired"
    HELD = "held"
    RELEASED = "released"


class WaitPolicy(BaseModel):
    """Wait policy derived from an optional timeout.

    Attributes:
        timeout: None waits forever, 0 tries once, >0 bounds the wait in seconds.
    """

    timeout: float | None = Field(default=None, ge=0)

    @property
    def mode(self) -> WaitMode:
        if self.timeout is None:
            return WaitMode.INDEFINITE
        if self.timeout == 0:
            return WaitMode.IMMEDIATE
        return WaitMode.BOUNDED

    def describe(self) -> str:
        if self.mode is WaitMode.INDEFINITE:
            return "waiting indefinitely"
        if self.mode is WaitMode.IMMEDIATE:
            return "without waiting"
        return f"within {self.timeout:g}s"
