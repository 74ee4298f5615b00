"""Per-invocation state shared by CLI commands."""

from dataclasses import dataclass
from typing import NoReturn

import typer

from .config import RabotConfig
from .core.cleanup import CleanupStack
from .errors import RabotError
from .output import get_output_context


@dataclass
class Runtime:
    """Objects owned by the CLI callback for the life of one command.

    Attributes:
        config: Loaded configuration.
        cleanup: The process's cleanup stack; unwound when the command ends.
    """

    config: RabotConfig
    cleanup: CleanupStack


def get_runtime(ctx: typer.Context) -> Runtime:
    """Return the Runtime set up by the root callback."""
    runtime = ctx.obj
    if not isinstance(runtime, Runtime):
        raise RuntimeError("rabot runtime not initialized")
    return runtime


def abort(error: RabotError) -> NoReturn:
    """Report a fatal error as one line and exit with its status."""
    get_output_context().error(str(error))
    raise typer.Exit(error.exit_code)
