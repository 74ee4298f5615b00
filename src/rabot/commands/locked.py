"""Lock-protected command execution (locked, once)."""

import typer

from ..core import INSTANCE_MODE_BLOCK, INSTANCE_MODE_FAIL, acquire_lock, one_instance
from ..errors import RabotError
from ..runtime import abort, get_runtime
from ..services import run_command


def _run_wrapped(command: list[str]) -> None:
    result = run_command(command, capture=False)
    if not result.ok:
        raise typer.Exit(result.returncode)


def locked(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Lock name shared by cooperating processes"),
    command: list[str] = typer.Argument(..., help="Command to run (after --)"),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        "-t",
        min=0,
        help="Seconds to wait for the lock (0 = fail immediately, default: wait forever)",
    ),
) -> None:
    """Run a command while holding a named lock."""
    runtime = get_runtime(ctx)
    locks = runtime.config.locks
    try:
        acquire_lock(runtime.cleanup, name, timeout, locks.dir, locks.poll_interval)
        _run_wrapped(command)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="NAME") from None
    except RabotError as e:
        abort(e)


def once(
    ctx: typer.Context,
    command: list[str] = typer.Argument(..., help="Command to run (after --)"),
    block: bool = typer.Option(
        False,
        "--block",
        "-b",
        help="Wait for the running instance instead of failing",
    ),
) -> None:
    """Run a command unless another instance of it is already running."""
    runtime = get_runtime(ctx)
    locks = runtime.config.locks
    mode = INSTANCE_MODE_BLOCK if block else INSTANCE_MODE_FAIL
    try:
        one_instance(
            runtime.cleanup,
            mode,
            program=command[0],
            lock_dir=locks.dir,
            poll_interval=locks.poll_interval,
        )
        _run_wrapped(command)
    except RabotError as e:
        abort(e)
