"""External command runner for rabot.

Every tool rabot wraps (openssl, tar, zip, find, grep, arbitrary user
commands) goes through this module. Output formats are never parsed; only
the exit status matters.
"""

import logging
import shutil
import subprocess
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from ..constants import CHILD_TERMINATE_TIMEOUT
from ..errors import CommandError, PrerequisiteError
from ..models import CommandResult

logger = logging.getLogger(__name__)


def require_tool(name: str) -> str:
    """Resolve an executable on PATH.

    Args:
        name: Executable name or path

    Returns:
        Absolute path of the executable

    Raises:
        PrerequisiteError: If the executable cannot be found
    """
    path = shutil.which(name)
    if path is None:
        raise PrerequisiteError(f"Required command not found: {name}")
    return path


def run_command(
    argv: Sequence[str],
    cwd: Path | None = None,
    capture: bool = True,
    timeout: float | None = None,
) -> CommandResult:
    """Run an external command and report its exit status.

    Args:
        argv: Command and arguments
        cwd: Working directory
        capture: Capture stdout/stderr (False passes the terminal through)
        timeout: Optional timeout in seconds

    Returns:
        CommandResult with exit status and any captured output

    Raises:
        PrerequisiteError: If the executable does not exist
        CommandError: If the command times out
    """
    args = [str(arg) for arg in argv]
    if not args:
        raise CommandError("No command given")
    logger.debug("Running: %s", " ".join(args))
    try:
        result = subprocess.run(
            args,
            cwd=cwd,
            capture_output=capture,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        raise PrerequisiteError(f"Command not found: {args[0]}") from None
    except subprocess.TimeoutExpired:
        raise CommandError(f"{args[0]} timed out after {timeout} seconds") from None

    return CommandResult(
        argv=args,
        returncode=result.returncode,
        stdout=result.stdout or "",
        stderr=result.stderr or "",
    )


def tee_command(
    argv: Sequence[str],
    sink: TextIO,
    cwd: Path | None = None,
    stream: TextIO | None = None,
) -> int:
    """Run a command, copying its merged stdout/stderr to ``stream`` and ``sink``.

    Args:
        argv: Command and arguments
        sink: Open text file receiving a copy of every line
        cwd: Working directory
        stream: Terminal stream (defaults to sys.stdout at call time)

    Returns:
        Exit status of the command

    Raises:
        PrerequisiteError: If the executable does not exist
    """
    args = [str(arg) for arg in argv]
    out = stream or sys.stdout
    logger.debug("Teeing: %s", " ".join(args))
    try:
        process = subprocess.Popen(
            args,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,  # Line buffered
        )
    except FileNotFoundError:
        raise PrerequisiteError(f"Command not found: {args[0]}") from None

    assert process.stdout is not None
    try:
        for line in process.stdout:
            out.write(line)
            out.flush()
            sink.write(line)
        return process.wait()
    finally:
        # Interrupted (signal or KeyboardInterrupt): don't leave the child behind
        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=CHILD_TERMINATE_TIMEOUT)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()
        process.stdout.close()
