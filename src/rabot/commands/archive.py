"""Archive command implementation."""

from pathlib import Path

import typer

from ..config import ArchiveConfig, ArchiveFormat
from ..constants import PARTIAL_SUFFIX
from ..core import ensure_directory, timestamped_name
from ..errors import CommandError, RabotError
from ..output import get_output_context
from ..runtime import abort, get_runtime
from ..services import run_command


def archive_argv(config: ArchiveConfig, fmt: ArchiveFormat, source: Path, target: Path) -> list[str]:
    """Build the tar/zip command archiving ``source`` into ``target``.

    Commands run from ``source.parent`` so entries start at the directory name.
    """
    if fmt is ArchiveFormat.ZIP:
        return [config.zip_exec, "-r", "-q", str(target), source.name]
    flag = fmt.tar_flag
    assert flag is not None
    return [config.tar_exec, "-c", flag, "-f", str(target), "-C", str(source.parent), source.name]


def archive(
    ctx: typer.Context,
    directory: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
        help="Directory to archive",
    ),
    fmt: ArchiveFormat | None = typer.Option(
        None, "--format", "-f", help="Archive format (default from config)"
    ),
    output_dir: Path | None = typer.Option(
        None, "--output-dir", "-o", help="Where to write the archive (default: next to DIRECTORY)"
    ),
) -> None:
    """Compress a directory into a timestamped archive."""
    out = get_output_context()
    runtime = get_runtime(ctx)
    config = runtime.config.archive
    fmt = fmt or config.format

    try:
        target_dir = ensure_directory((output_dir or directory.parent).resolve())
        target = target_dir / timestamped_name(directory.name, f".{fmt.value}")
        partial = target.with_name(target.name + PARTIAL_SUFFIX)

        # Registered before the tool runs so an interrupted run leaves nothing behind
        runtime.cleanup.register_undo(
            lambda: partial.unlink(missing_ok=True), label=f"remove {partial.name}"
        )
        result = run_command(archive_argv(config, fmt, directory, partial), cwd=directory.parent)
        if not result.ok:
            raise CommandError(f"Archiving {directory.name} failed: {result.summary()}")
        partial.replace(target)
    except RabotError as e:
        abort(e)

    out.result({"archive": str(target), "format": fmt.value}, message=str(target))
