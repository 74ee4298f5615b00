"""rabot CLI: personal shell-scripting toolkit."""

from pathlib import Path

import typer

from rabot import __version__

from .commands import archive, decrypt, encrypt, ff, gr, init, locked, logrun, once
from .config import load_config
from .core.cleanup import CleanupStack
from .errors import RabotError
from .logging import configure_logging
from .output import OutputContext, set_output_context
from .runtime import Runtime, abort


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"rabot {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="rabot",
    help="Shell-scripting toolkit: locks, archives, encryption and logging wrappers",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v, -vv)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only show warnings and errors",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in JSON format for automation",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (default: $RABOT_CONFIG or ~/.config/rabot/config.toml)",
    ),
) -> None:
    """rabot - shell-scripting toolkit."""
    console = configure_logging(
        verbosity=verbose,
        quiet=quiet,
        no_color=no_color,
    )
    set_output_context(OutputContext(console=console, json_mode=json_output))

    try:
        config = load_config(config_path)
    except RabotError as e:
        abort(e)

    # One stack per invocation; unwound when the command finishes, at exit,
    # or on SIGTERM/SIGHUP/SIGINT
    cleanup = CleanupStack()
    cleanup.install()
    ctx.call_on_close(cleanup.unwind)
    ctx.obj = Runtime(config=config, cleanup=cleanup)


app.command()(init)
app.command()(locked)
app.command()(once)
app.command()(archive)
app.command()(encrypt)
app.command()(decrypt)
app.command()(logrun)
app.command(help="Find files by name (find -iname '*PATTERN*').")(ff)
app.command(help="Search file contents (grep -rIn).")(gr)


if __name__ == "__main__":
    app()
