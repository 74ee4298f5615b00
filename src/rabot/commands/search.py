"""find/grep convenience wrappers."""

from pathlib import Path

import typer

from ..errors import RabotError
from ..runtime import abort
from ..services import run_command


def find_argv(pattern: str, path: Path) -> list[str]:
    """Case-insensitive name match anywhere under ``path``."""
    return ["find", str(path), "-iname", f"*{pattern}*"]


def grep_argv(pattern: str, path: Path, ignore_case: bool = False) -> list[str]:
    """Recursive grep with line numbers, skipping binary files."""
    argv = ["grep", "-r", "-I", "-n"]
    if ignore_case:
        argv.append("-i")
    return argv + ["--", pattern, str(path)]


def _passthrough(argv: list[str]) -> None:
    try:
        result = run_command(argv, capture=False)
    except RabotError as e:
        abort(e)
    if not result.ok:
        raise typer.Exit(result.returncode)


def ff(
    pattern: str = typer.Argument(..., help="Part of the file name to look for"),
    path: Path = typer.Argument(Path("."), help="Where to search"),
) -> None:
    """Find files whose name contains PATTERN."""
    _passthrough(find_argv(pattern, path))


def gr(
    pattern: str = typer.Argument(..., help="Regular expression to search for"),
    path: Path = typer.Argument(Path("."), help="Where to search"),
    ignore_case: bool = typer.Option(False, "--ignore-case", "-i", help="Ignore case"),
) -> None:
    """Search file contents recursively."""
    _passthrough(grep_argv(pattern, path, ignore_case))
