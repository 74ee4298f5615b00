"""Tests for the exit-time cleanup stack."""

import logging
import signal
import sys

import pytest

from rabot.core.cleanup import CleanupStack, session
from rabot.errors import AcquisitionError, PrerequisiteError
from rabot.models import CommandResult


def recorder(log: list[str], item: str):
    """Undo action appending ``item`` to ``log``."""

    def _undo() -> None:
        log.append(item)

    return _undo


class TestRegisterUndo:
    """Tests for register_undo."""

    def test_actions_kept_in_registration_order(self, stack: CleanupStack) -> None:
        """Pending actions are listed first-registered first."""
        stack.register_undo(recorder([], "a"), label="a")
        stack.register_undo(recorder([], "b"), label="b")
        assert [u.label for u in stack.pending] == ["a", "b"]
        assert [u.order for u in stack.pending] == [1, 2]
        assert len(stack) == 2

    def test_registration_has_no_side_effects(self, stack: CleanupStack) -> None:
        """Registering does not run the action."""
        log: list[str] = []
        stack.register_undo(recorder(log, "x"))
        assert log == []

    def test_rejects_command_strings(self, stack: CleanupStack) -> None:
        """Commands must be argument lists."""
        with pytest.raises(TypeError):
            stack.register_undo("rm -rf /tmp/x")  # type: ignore[arg-type]

    def test_rejects_empty_command(self, stack: CleanupStack) -> None:
        with pytest.raises(TypeError):
            stack.register_undo([])

    def test_default_label_describes_command(self, stack: CleanupStack) -> None:
        undo = stack.register_undo(["rm", "-f", "x"])
        assert undo.label == "rm -f x"


class TestUnwind:
    """Tests for unwind."""

    def test_runs_in_reverse_order(self) -> None:
        """LIFO: last registered runs first."""
        log: list[str] = []
        stack = CleanupStack()
        for item in ("1", "2", "3", "4"):
            stack.register_undo(recorder(log, item))
        report = stack.unwind()
        assert log == ["4", "3", "2", "1"]
        assert report.executed == [4, 3, 2, 1]
        assert report.ok

    def test_failure_does_not_stop_unwind(self, caplog: pytest.LogCaptureFixture) -> None:
        """A failing action mid-stack is reported; the rest still run."""
        log: list[str] = []

        def broken() -> None:
            log.append("2")
            raise OSError("disk gone")

        stack = CleanupStack()
        stack.register_undo(recorder(log, "1"))
        stack.register_undo(broken, label="broken step")
        stack.register_undo(recorder(log, "3"))

        with caplog.at_level(logging.ERROR, logger="rabot"):
            report = stack.unwind()

        assert log == ["3", "2", "1"]
        assert not report.ok
        assert [f.label for f in report.failures] == ["broken step"]
        assert "disk gone" in (report.failures[0].error or "")
        assert "broken step" in caplog.text

    def test_exit_in_action_does_not_stop_unwind(self) -> None:
        """An action calling sys.exit is a failure, not a new exit status."""
        log: list[str] = []

        def exits() -> None:
            sys.exit(3)

        stack = CleanupStack()
        stack.register_undo(recorder(log, "1"))
        stack.register_undo(exits, label="exits")
        stack.register_undo(recorder(log, "3"))

        report = stack.unwind()

        assert log == ["3", "1"]
        assert len(stack) == 0
        assert [f.label for f in report.failures] == ["exits"]
        assert "SystemExit" in (report.failures[0].error or "")

    def test_keyboard_interrupt_in_action_is_recorded(self) -> None:
        log: list[str] = []

        def interrupted() -> None:
            raise KeyboardInterrupt

        stack = CleanupStack()
        stack.register_undo(recorder(log, "1"))
        stack.register_undo(interrupted, label="interrupted")

        report = stack.unwind()

        assert log == ["1"]
        assert [f.label for f in report.failures] == ["interrupted"]

    def test_false_and_nonzero_results_are_failures(self) -> None:
        """Callables fail by returning False or a non-zero status."""
        stack = CleanupStack()
        stack.register_undo(lambda: False, label="false")
        stack.register_undo(lambda: 3, label="three")
        stack.register_undo(lambda: None, label="none")
        stack.register_undo(lambda: True, label="true")
        report = stack.unwind()
        assert sorted(f.label for f in report.failures) == ["false", "three"]

    def test_command_actions_use_runner(self) -> None:
        """Argument-list actions go through the injected command runner."""
        calls: list[list[str]] = []

        def runner(argv):
            calls.append(list(argv))
            return CommandResult(argv=list(argv), returncode=0 if argv[0] == "ok" else 2)

        stack = CleanupStack(runner=runner)
        stack.register_undo(["ok", "1"])
        stack.register_undo(["bad", "2"])
        report = stack.unwind()
        assert calls == [["bad", "2"], ["ok", "1"]]
        assert [f.label for f in report.failures] == ["bad 2"]

    def test_unwind_is_idempotent(self) -> None:
        """Draining twice runs each action once."""
        log: list[str] = []
        stack = CleanupStack()
        stack.register_undo(recorder(log, "x"))
        stack.unwind()
        second = stack.unwind()
        assert log == ["x"]
        assert second.outcomes == []
        assert len(stack) == 0

    def test_empty_unwind_is_noop(self) -> None:
        report = CleanupStack().unwind()
        assert report.ok
        assert report.outcomes == []

    def test_context_manager_unwinds(self) -> None:
        log: list[str] = []
        with CleanupStack() as stack:
            stack.register_undo(recorder(log, "a"))
            stack.register_undo(recorder(log, "b"))
        assert log == ["b", "a"]


class TestRunAndRegister:
    """Tests for run_and_register."""

    def test_success_registers_undo(self, stack: CleanupStack) -> None:
        """A successful primary registers its undo and returns its result."""
        result = stack.run_and_register(recorder([], "undo"), lambda: "handle", label="open")
        assert result == "handle"
        assert [u.label for u in stack.pending] == ["undo open"]

    def test_failure_skips_undo_and_raises(self, stack: CleanupStack) -> None:
        """A failed primary raises and its undo is never registered."""
        with pytest.raises(AcquisitionError, match="mount failed"):
            stack.run_and_register(recorder([], "undo"), lambda: False, label="mount")
        assert len(stack) == 0

    def test_exception_in_primary_becomes_acquisition_error(self, stack: CleanupStack) -> None:
        def boom() -> None:
            raise OSError("no space")

        with pytest.raises(AcquisitionError, match="no space"):
            stack.run_and_register(recorder([], "undo"), boom, label="copy")
        assert len(stack) == 0

    def test_rabot_errors_propagate_unchanged(self, stack: CleanupStack) -> None:
        def missing() -> None:
            raise PrerequisiteError("Command not found: nope")

        with pytest.raises(PrerequisiteError):
            stack.run_and_register(recorder([], "undo"), missing)

    def test_partial_unwind_after_failure(self) -> None:
        """If step k fails only steps 1..k-1 are unwound, in reverse."""
        log: list[str] = []
        stack = CleanupStack()
        stack.run_and_register(recorder(log, "U1"), lambda: None)
        stack.run_and_register(recorder(log, "U2"), lambda: None)
        with pytest.raises(AcquisitionError):
            stack.run_and_register(recorder(log, "U3"), lambda: 1)
        stack.unwind()
        assert log == ["U2", "U1"]

    def test_command_primary(self, stack: CleanupStack) -> None:
        """Argument-list primaries run as external commands."""
        result = stack.run_and_register(["true"], ["true"])
        assert isinstance(result, CommandResult)
        assert result.ok
        assert len(stack) == 1

    def test_failing_command_primary(self, stack: CleanupStack) -> None:
        with pytest.raises(AcquisitionError, match="exited with status 3"):
            stack.run_and_register(["true"], [sys.executable, "-c", "raise SystemExit(3)"])
        assert len(stack) == 0

    def test_missing_command_primary(self, stack: CleanupStack) -> None:
        with pytest.raises(PrerequisiteError, match="Command not found"):
            stack.run_and_register(["true"], ["rabot-no-such-tool-xyz"])


class TestInstall:
    """Tests for the teardown hook."""

    def test_install_sets_and_unwind_restores_signal_handlers(self) -> None:
        previous = signal.getsignal(signal.SIGTERM)
        stack = CleanupStack()
        stack.install()
        try:
            assert stack.installed
            assert signal.getsignal(signal.SIGTERM) == stack._on_signal
        finally:
            stack.unwind()
        assert not stack.installed
        assert signal.getsignal(signal.SIGTERM) == previous

    def test_install_is_idempotent(self) -> None:
        stack = CleanupStack()
        stack.install()
        stack.install()
        stack.unwind()
        assert signal.getsignal(signal.SIGTERM) != stack._on_signal

    def test_signal_handler_exits_with_shell_status(self) -> None:
        stack = CleanupStack()
        with pytest.raises(SystemExit) as exc_info:
            stack._on_signal(signal.SIGTERM, None)
        assert exc_info.value.code == 128 + signal.SIGTERM


class TestSession:
    """Tests for the session() context manager."""

    def test_unwinds_on_normal_exit(self) -> None:
        log: list[str] = []
        with session() as stack:
            stack.register_undo(recorder(log, "a"))
            stack.register_undo(recorder(log, "b"))
        assert log == ["b", "a"]
        assert not stack.installed

    def test_rabot_error_becomes_exit_after_unwind(self, capsys: pytest.CaptureFixture) -> None:
        """Fatal errors print one line, unwind, and exit with status 1."""
        log: list[str] = []
        with pytest.raises(SystemExit) as exc_info, session() as stack:
            stack.run_and_register(recorder(log, "U1"), lambda: None)
            stack.run_and_register(recorder(log, "U2"), lambda: False, label="attach")
        assert exc_info.value.code == 1
        assert log == ["U1"]
        assert "attach failed" in capsys.readouterr().err

    def test_other_exceptions_propagate(self) -> None:
        log: list[str] = []
        with pytest.raises(KeyError), session() as stack:
            stack.register_undo(recorder(log, "a"))
            raise KeyError("x")
        assert log == ["a"]
