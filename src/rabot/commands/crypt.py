"""Encrypt/decrypt command implementations (openssl enc wrappers)."""

from pathlib import Path

import typer

from ..config import CryptConfig
from ..constants import PARTIAL_SUFFIX
from ..core import strip_suffix
from ..errors import CommandError, RabotError
from ..output import get_output_context
from ..runtime import abort, get_runtime
from ..services import run_command

DECRYPTED_SUFFIX = ".dec"


def crypt_argv(config: CryptConfig, source: Path, target: Path, decrypt: bool = False) -> list[str]:
    """Build the ``openssl enc`` command line. The passphrase is prompted by openssl."""
    argv = [config.exec, "enc"]
    if decrypt:
        argv.append("-d")
    argv += [
        f"-{config.cipher}",
        "-salt",
        "-pbkdf2",
        "-iter",
        str(config.iterations),
        "-in",
        str(source),
        "-out",
        str(target),
    ]
    return argv


def default_output(config: CryptConfig, source: Path, decrypt: bool) -> Path:
    """FILE.enc when encrypting; FILE without .enc (or FILE.dec) when decrypting."""
    if not decrypt:
        return source.with_name(source.name + config.suffix)
    stripped = strip_suffix(source, config.suffix)
    if stripped == source:
        return source.with_name(source.name + DECRYPTED_SUFFIX)
    return stripped


def _crypt(ctx: typer.Context, source: Path, output: Path | None, force: bool, decrypt: bool) -> None:
    out = get_output_context()
    runtime = get_runtime(ctx)
    config = runtime.config.crypt
    target = output or default_output(config, source, decrypt)
    action = "Decrypting" if decrypt else "Encrypting"

    try:
        if target.exists() and not force:
            raise RabotError(f"Output already exists: {target} (use --force to overwrite)")
        partial = target.with_name(target.name + PARTIAL_SUFFIX)
        runtime.cleanup.register_undo(
            lambda: partial.unlink(missing_ok=True), label=f"remove {partial.name}"
        )
        result = run_command(crypt_argv(config, source, partial, decrypt), capture=False)
        if not result.ok:
            raise CommandError(f"{action} {source.name} failed: {result.summary()}")
        partial.replace(target)
    except RabotError as e:
        abort(e)

    out.result({"input": str(source), "output": str(target)}, message=str(target))


def encrypt(
    ctx: typer.Context,
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to encrypt"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing output file"),
) -> None:
    """Encrypt a file with openssl."""
    _crypt(ctx, source, output, force, decrypt=False)


def decrypt(
    ctx: typer.Context,
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to decrypt"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing output file"),
) -> None:
    """Decrypt a file produced by ``rabot encrypt``."""
    _crypt(ctx, source, output, force, decrypt=True)
