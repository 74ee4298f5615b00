"""Named cross-process locks for rabot.

Each lock name maps to an empty file in a well-known directory. Ownership is
the exclusive ``fcntl.flock`` held on that file, never the file's presence:
the OS drops the lock when the holder exits or crashes, and the file is left
in place on release so there is nothing to race over.
"""

import hashlib
import logging
import os
import re
import sys
import time
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path

try:
    import fcntl
except ImportError:  # pragma: no cover - exercised on non-POSIX only
    fcntl = None

from ..config import default_lock_dir
from ..constants import INSTANCE_HASH_LENGTH, LOCK_POLL_INTERVAL, LOCK_SUFFIX
from ..errors import LockError, PrerequisiteError
from ..models import LockState, WaitMode, WaitPolicy
from .cleanup import CleanupStack
from .paths import resolve_program

logger = logging.getLogger(__name__)

INSTANCE_MODE_BLOCK = "block"
INSTANCE_MODE_FAIL = "fail"


def lock_path(name: str, lock_dir: Path | None = None) -> Path:
    """Map a lock name to its backing file.

    Raises:
        ValueError: If the name is empty, '.', '..' or contains a separator
    """
    separators = [os.sep, "/", "\0"] + ([os.altsep] if os.altsep else [])
    if not name or name in (".", "..") or any(sep in name for sep in separators):
        raise ValueError(f"Invalid lock name: {name!r}")
    return (lock_dir or default_lock_dir()) / f"{name}{LOCK_SUFFIX}"


@dataclass
class FileLock:
    """A named lock and the descriptor holding it."""

    name: str
    path: Path
    policy: WaitPolicy = field(default_factory=WaitPolicy)
    state: LockState = LockState.UNACQUIRED
    fd: int | None = field(default=None, repr=False)

    @property
    def held(self) -> bool:
        return self.state is LockState.HELD

    def release(self) -> None:
        """Unlock and close the handle. The lock file stays on disk."""
        if self.state is not LockState.HELD or self.fd is None:
            return
        fd, self.fd = self.fd, None
        self.state = LockState.RELEASED
        try:
            assert fcntl is not None  # For type checkers.
            # Closing the descriptor releases the lock regardless
            with suppress(OSError):
                fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)
        logger.debug("Released lock %s", self.name)


def _open_lock_file(path: Path) -> int:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return os.open(str(path), os.O_CREAT | os.O_RDWR, 0o600)
    except OSError as e:
        raise PrerequisiteError(f"Cannot open lock file {path}: {e.strerror}") from e


def _try_lock(fd: int, path: Path, blocking: bool) -> bool:
    assert fcntl is not None  # For type checkers.
    flags = fcntl.LOCK_EX if blocking else fcntl.LOCK_EX | fcntl.LOCK_NB
    try:
        fcntl.flock(fd, flags)
    except BlockingIOError:
        return False
    except OSError as e:
        raise PrerequisiteError(f"Cannot lock {path}: {e.strerror}") from e
    return True


def _wait_for_lock(fd: int, path: Path, policy: WaitPolicy, poll_interval: float) -> bool:
    """Take the lock on ``fd`` under ``policy``. Returns False on timeout."""
    if policy.mode is WaitMode.INDEFINITE:
        return _try_lock(fd, path, blocking=True)

    start = time.monotonic()
    if _try_lock(fd, path, blocking=False):
        return True
    if policy.mode is WaitMode.IMMEDIATE:
        return False

    assert policy.timeout is not None
    deadline = start + policy.timeout
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        time.sleep(min(poll_interval, remaining))
        if _try_lock(fd, path, blocking=False):
            return True


def acquire_lock(
    stack: CleanupStack,
    name: str,
    timeout: float | None = None,
    lock_dir: Path | None = None,
    poll_interval: float = LOCK_POLL_INTERVAL,
) -> FileLock:
    """Acquire the named lock and register its release on ``stack``.

    Args:
        stack: Cleanup stack that releases the lock on teardown
        name: Lock name, shared by all cooperating processes
        timeout: None blocks indefinitely, 0 tries once, >0 waits that long
        lock_dir: Directory of lock files (defaults to the well-known one)
        poll_interval: Seconds between attempts under a bounded wait

    Returns:
        The held lock

    Raises:
        ValueError: If the name or timeout is invalid
        LockError: If the lock is not obtained under the wait policy
        PrerequisiteError: If locking is unavailable or the file can't be opened
    """
    if timeout is not None and timeout < 0:
        raise ValueError(f"Invalid lock timeout: {timeout}")
    if fcntl is None:
        raise PrerequisiteError("fcntl locks are unavailable on this platform")

    policy = WaitPolicy(timeout=timeout)
    path = lock_path(name, lock_dir)
    fd = _open_lock_file(path)

    acquired = False
    try:
        logger.debug("Acquiring lock %s (%s)", name, policy.describe())
        acquired = _wait_for_lock(fd, path, policy, poll_interval)
    finally:
        if not acquired:
            os.close(fd)
    if not acquired:
        raise LockError(name, f"Could not acquire lock '{name}' {policy.describe()}")

    lock = FileLock(name=name, path=path, policy=policy, state=LockState.HELD, fd=fd)
    stack.register_undo(lock.release, label=f"release lock {name}")
    logger.debug("Acquired lock %s", name)
    return lock


def instance_lock_name(program: str | Path) -> str:
    """Derive a lock name from a program's identity.

    The base name keeps lock files readable; the path hash keeps programs
    that share a base name apart.
    """
    resolved = resolve_program(program)
    digest = hashlib.sha256(str(resolved).encode()).hexdigest()[:INSTANCE_HASH_LENGTH]
    stem = re.sub(r"[^A-Za-z0-9._-]", "_", resolved.name) or "program"
    return f"{stem}-{digest}"


def one_instance(
    stack: CleanupStack,
    mode: str = INSTANCE_MODE_FAIL,
    program: str | Path | None = None,
    lock_dir: Path | None = None,
    poll_interval: float = LOCK_POLL_INTERVAL,
) -> FileLock:
    """Ensure at most one running instance of ``program``.

    Args:
        stack: Cleanup stack that releases the lock on teardown
        mode: "block" waits for the running instance; anything else fails fast
        program: Program identity (defaults to sys.argv[0])
        lock_dir: Directory of lock files
        poll_interval: Passed through to acquire_lock

    Raises:
        LockError: If another instance holds the lock (non-blocking modes)
    """
    name = instance_lock_name(program if program is not None else sys.argv[0])
    if mode == INSTANCE_MODE_BLOCK:
        return acquire_lock(stack, name, None, lock_dir, poll_interval)
    try:
        return acquire_lock(stack, name, 0, lock_dir, poll_interval)
    except LockError as e:
        raise LockError(
            name, f"An instance of this script is already running (lock '{name}')"
        ) from e
