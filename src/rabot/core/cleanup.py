"""Exit-time cleanup stack.

A ``CleanupStack`` records one undo action per successful acquisition step
and runs them in reverse order when the owning process finishes: at the end
of a ``with`` block or ``session()``, at interpreter exit, or when a
termination signal arrives. Acquisition code stays flat:

    with session() as stack:
        stack.run_and_register(["rm", "-f", tmp], ["cp", src, tmp])
        acquire_lock(stack, "backups")
        ...

A failed step raises ``AcquisitionError``; its undo is never registered and
everything registered before it is unwound on the way out.
"""

import atexit
import logging
import signal
import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from types import FrameType
from typing import Any

from ..constants import SIGNAL_EXIT_BASE
from ..errors import AcquisitionError, RabotError
from ..models import CleanupReport, CommandResult, UndoOutcome
from ..output import get_output_context
from ..services.commands import run_command

logger = logging.getLogger(__name__)

Action = Callable[[], object] | Sequence[str]
CommandRunner = Callable[[Sequence[str]], CommandResult]

TEARDOWN_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGHUP", "SIGINT") if hasattr(signal, name)
)


def _describe(action: Action) -> str:
    if callable(action):
        return getattr(action, "__qualname__", None) or repr(action)
    return " ".join(str(arg) for arg in action)


def _validate(action: Action) -> None:
    if isinstance(action, str | bytes):
        raise TypeError("Pass external commands as argument lists, not strings")
    if not callable(action) and not action:
        raise TypeError("Empty command")


def _invoke(action: Action, runner: CommandRunner) -> object:
    if callable(action):
        return action()
    return runner(action)


def _failure(result: object) -> str | None:
    """Describe why ``result`` counts as a failure, or None on success.

    Callables fail by raising, returning False or returning a non-zero int;
    commands fail with a non-zero exit status.
    """
    if result is False:
        return "returned False"
    if isinstance(result, CommandResult):
        return None if result.ok else result.summary()
    if isinstance(result, int) and not isinstance(result, bool) and result != 0:
        return f"returned status {result}"
    return None


@dataclass(frozen=True)
class UndoAction:
    """A registered reversal step. Executed at most once, during unwind."""

    order: int
    label: str
    action: Action

    def run(self, runner: CommandRunner) -> UndoOutcome:
        # SystemExit and KeyboardInterrupt count as failures and never end the unwind
        try:
            failure = _failure(_invoke(self.action, runner))
        except BaseException as e:
            failure = f"{type(e).__name__}: {e}"
        return UndoOutcome(order=self.order, label=self.label, ok=failure is None, error=failure)


class CleanupStack:
    """Per-process LIFO registry of undo actions.

    Owned by the top-level controller and passed to every code path that
    acquires resources. ``install()`` hooks interpreter exit and termination
    signals so the stack is drained however the process ends.
    """

    def __init__(self, runner: CommandRunner = run_command) -> None:
        self._runner = runner
        self._actions: list[UndoAction] = []
        self._next_order = 1
        self._unwinding = False
        self._installed = False
        self._exiting = False
        self._previous_handlers: dict[int, Any] = {}

    def __len__(self) -> int:
        return len(self._actions)

    def __enter__(self) -> "CleanupStack":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unwind()

    @property
    def pending(self) -> tuple[UndoAction, ...]:
        """Registered actions in registration order."""
        return tuple(self._actions)

    @property
    def installed(self) -> bool:
        return self._installed

    def register_undo(self, action: Action, label: str | None = None) -> UndoAction:
        """Append an undo action to the stack."""
        _validate(action)
        undo = UndoAction(order=self._next_order, label=label or _describe(action), action=action)
        self._next_order += 1
        self._actions.append(undo)
        logger.debug("Registered undo #%d: %s", undo.order, undo.label)
        return undo

    def run_and_register(self, undo: Action, primary: Action, label: str | None = None) -> object:
        """Run ``primary``; on success register ``undo`` and return the result.

        Args:
            undo: Action reversing ``primary``
            primary: Acquisition step (callable or command argument list)
            label: Description of the step for messages

        Returns:
            Whatever ``primary`` returned (a CommandResult for commands)

        Raises:
            AcquisitionError: If ``primary`` fails; ``undo`` is not registered
            RabotError: Prerequisite failures raised by ``primary`` propagate as-is
        """
        _validate(undo)
        _validate(primary)
        name = label or _describe(primary)
        try:
            result = _invoke(primary, self._runner)
        except RabotError:
            raise
        except Exception as e:
            raise AcquisitionError(f"{name} failed: {e}") from e

        failure = _failure(result)
        if failure is not None:
            raise AcquisitionError(f"{name} failed: {failure}")

        self.register_undo(undo, label=f"undo {label}" if label else None)
        return result

    def unwind(self) -> CleanupReport:
        """Run every registered action, most recent first.

        Failures are collected, logged after the pass and never raised.
        Unwinding an empty or already drained stack does nothing.
        """
        report = CleanupReport()
        if self._unwinding:
            return report

        self._unwinding = True
        try:
            while self._actions:
                undo = self._actions.pop()
                report.outcomes.append(undo.run(self._runner))
        finally:
            self._unwinding = False
            self._uninstall()

        for outcome in report.failures:
            logger.error("Cleanup #%d (%s) failed: %s", outcome.order, outcome.label, outcome.error)
        if report.outcomes:
            logger.debug(
                "Unwound %d cleanup action(s), %d failed",
                len(report.outcomes),
                len(report.failures),
            )
        return report

    def install(self) -> None:
        """Hook interpreter exit and termination signals. Idempotent."""
        if self._installed:
            return
        atexit.register(self._at_exit)
        if threading.current_thread() is threading.main_thread():
            for signum in TEARDOWN_SIGNALS:
                self._previous_handlers[signum] = signal.signal(signum, self._on_signal)
        self._installed = True

    def _uninstall(self) -> None:
        if not self._installed:
            return
        if not self._exiting:
            atexit.unregister(self._at_exit)
        if threading.current_thread() is threading.main_thread():
            for signum, previous in self._previous_handlers.items():
                if previous is not None:
                    signal.signal(signum, previous)
        self._previous_handlers.clear()
        self._installed = False

    def _at_exit(self) -> None:
        self._exiting = True
        self.unwind()

    def _on_signal(self, signum: int, frame: FrameType | None) -> None:
        if self._unwinding:
            return
        logger.debug("Received signal %d, exiting", signum)
        # SystemExit unwinds with/finally blocks and atexit, which drain the stack
        raise SystemExit(SIGNAL_EXIT_BASE + signum)


@contextmanager
def session(stack: CleanupStack | None = None) -> Iterator[CleanupStack]:
    """Run a script body with an installed cleanup stack.

    A ``RabotError`` escaping the body is reported as one line on stderr and
    turned into ``SystemExit`` with the error's exit status. The stack is
    unwound before the process leaves the block.
    """
    if stack is None:
        stack = CleanupStack()
    stack.install()
    try:
        yield stack
    except RabotError as e:
        get_output_context().error(str(e))
        raise SystemExit(e.exit_code) from None
    finally:
        stack.unwind()
