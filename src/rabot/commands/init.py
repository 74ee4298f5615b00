"""Init command implementation."""

from pathlib import Path

import typer

from ..config import default_config_path, load_config, write_config_template
from ..constants import INIT_TOOL_CHECK_TIMEOUT
from ..errors import CommandError, PrerequisiteError, RabotError
from ..output import get_output_context
from ..runtime import abort, get_runtime
from ..services import require_tool, run_command


def toolchain(ctx: typer.Context) -> dict[str, list[str]]:
    """Health-check commands for every external tool rabot wraps."""
    config = get_runtime(ctx).config
    return {
        "openssl": [config.crypt.exec, "version"],
        "tar": [config.archive.tar_exec, "--version"],
        "zip": [config.archive.zip_exec, "-v"],
        "find": ["find", ".", "-maxdepth", "0"],
        "grep": ["grep", "--version"],
    }


def init(
    ctx: typer.Context,
    config_path: Path | None = typer.Option(
        None, "--path", help="Where to write config.toml (default: XDG config dir)"
    ),
) -> None:
    """Write a config template and check the external toolchain."""
    out = get_output_context()
    path = config_path or default_config_path()

    if not path.exists():
        write_config_template(path)
        out.success(f"Created config template: {path}", {"config": str(path)})
    else:
        try:
            load_config(path)
        except RabotError as e:
            abort(e)
        out.print(f"Config already exists: {path}", style="yellow")

    all_ok = True
    for name, cmd in toolchain(ctx).items():
        try:
            require_tool(cmd[0])
            result = run_command(cmd, timeout=INIT_TOOL_CHECK_TIMEOUT)
        except PrerequisiteError:
            out.console.print(f"[red]✗[/red] {name}: not found in PATH")
            all_ok = False
            continue
        except CommandError:
            out.console.print(f"[yellow]?[/yellow] {name}: timed out")
            continue
        if result.ok:
            out.console.print(f"[green]✓[/green] {name}")
        else:
            out.console.print(f"[red]✗[/red] {name}: {result.summary()}")
            all_ok = False

    if not all_ok:
        out.console.print("\n[yellow]Warning: Some tools are missing or not configured[/yellow]")
        raise typer.Exit(2)

    out.success("rabot is ready.")
