"""Logrun command: tee a command's output into a timestamped log file."""

import logging
import shlex
from datetime import datetime
from pathlib import Path

import typer

from ..core import ensure_directory, timestamped_name
from ..errors import PrerequisiteError, RabotError
from ..runtime import abort, get_runtime
from ..services import tee_command

logger = logging.getLogger(__name__)


def log_file_for(log_dir: Path, command: list[str], when: datetime | None = None) -> Path:
    """``<log_dir>/<program>-<timestamp>.log``."""
    return log_dir / timestamped_name(Path(command[0]).name, ".log", when)


def logrun(
    ctx: typer.Context,
    command: list[str] = typer.Argument(..., help="Command to run (after --)"),
    log_dir: Path | None = typer.Option(
        None, "--log-dir", "-d", help="Directory for log files (default from config)"
    ),
) -> None:
    """Run a command, copying its output to a timestamped log file."""
    runtime = get_runtime(ctx)
    started = datetime.now()

    try:
        directory = ensure_directory(log_dir or runtime.config.logrun.log_dir)
        log_file = log_file_for(directory, command, started)
        try:
            with open(log_file, "w", encoding="utf-8") as sink:
                sink.write(f"# {shlex.join(command)}\n# started {started.isoformat()}\n")
                returncode = tee_command(command, sink)
                sink.write(f"# exit status {returncode}\n")
        except OSError as e:
            raise PrerequisiteError(f"Cannot write log file {log_file}: {e.strerror}") from e
    except RabotError as e:
        abort(e)

    logger.info("Log written to %s", log_file)
    if returncode != 0:
        raise typer.Exit(returncode)
