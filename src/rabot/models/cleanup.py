"""Cleanup report models.

An unwind never raises; each undo action's result is captured as an
``UndoOutcome`` and the whole pass is summarized in a ``CleanupReport``.
"""

from pydantic import BaseModel, Field


class UndoOutcome(BaseModel):
    """Result of running one undo action during teardown.

    Attributes:
        order: Registration position (1 = first registered).
        label: Human-readable description of the action.
        ok: Whether the action completed successfully.
        error: Failure description when ``ok`` is False.
    """

    order: int = Field(ge=1)
    label: str
    ok: bool
    error: str | None = None


class CleanupReport(BaseModel):
    """Outcomes of one unwind, in execution order (most recent first)."""

    outcomes: list[UndoOutcome] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(outcome.ok for outcome in self.outcomes)

    @property
    def failures(self) -> list[UndoOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def executed(self) -> list[int]:
        """Registration orders in the sequence they were run."""
        return [outcome.order for outcome in self.outcomes]
