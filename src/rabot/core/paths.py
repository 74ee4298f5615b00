"""Path helpers shared by rabot commands."""

import os
import shutil
from datetime import datetime
from pathlib import Path

from ..constants import TIMESTAMP_FORMAT
from ..errors import PrerequisiteError


def timestamp(when: datetime | None = None) -> str:
    """Format a filename-safe timestamp (YYYYmmdd-HHMMSS)."""
    return (when or datetime.now()).strftime(TIMESTAMP_FORMAT)


def timestamped_name(stem: str, suffix: str = "", when: datetime | None = None) -> str:
    """Build ``<stem>-<timestamp><suffix>``.

    Args:
        stem: Base name (e.g. a directory or program name)
        suffix: Extension including the leading dot, or empty
        when: Time to stamp (defaults to now)
    """
    return f"{stem}-{timestamp(when)}{suffix}"


def strip_suffix(path: Path, suffix: str) -> Path:
    """Drop ``suffix`` from the file name if present."""
    if suffix and path.name.endswith(suffix) and path.name != suffix:
        return path.with_name(path.name[: -len(suffix)])
    return path


def ensure_directory(path: Path) -> Path:
    """Create ``path`` (with parents) and check it is writable.

    Raises:
        PrerequisiteError: If the directory cannot be created or written to
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PrerequisiteError(f"Cannot create directory {path}: {e.strerror}") from e
    if not os.access(path, os.W_OK | os.X_OK):
        raise PrerequisiteError(f"Directory is not writable: {path}")
    return path


def resolve_program(program: str | Path) -> Path:
    """Resolve a program name or path to an absolute path.

    Existing paths win; bare names are looked up on PATH; anything else is
    resolved against the working directory.
    """
    candidate = Path(program).expanduser()
    if candidate.exists():
        return candidate.resolve()
    text = str(program)
    if os.sep not in text and not (os.altsep and os.altsep in text):
        found = shutil.which(text)
        if found:
            return Path(found).resolve()
    return candidate.resolve()
