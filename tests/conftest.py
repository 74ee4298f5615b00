"""Shared test fixtures for rabot tests."""

import subprocess
import sys
from collections.abc import Generator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from rabot.core import CleanupStack


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def lock_dir(tmp_path: Path) -> Path:
    """Directory for lock files, isolated per test."""
    return tmp_path / "locks"


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, lock_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point config and lock locations at the test's temp directory."""
    monkeypatch.setenv("RABOT_CONFIG", str(tmp_path / "config.toml"))
    monkeypatch.setenv("RABOT_LOCK_DIR", str(lock_dir))
    monkeypatch.setattr("rabot.output._ctx", None)


@pytest.fixture
def stack() -> Generator[CleanupStack, None, None]:
    """Cleanup stack unwound at the end of the test."""
    s = CleanupStack()
    try:
        yield s
    finally:
        s.unwind()


@pytest.fixture
def spawn():
    """Start a Python child running ``code`` with ``args``.

    Children get a stdin pipe so tests decide when they finish.
    """
    procs: list[subprocess.Popen] = []

    def _spawn(code: str, *args: str) -> subprocess.Popen:
        proc = subprocess.Popen(
            [sys.executable, "-c", code, *args],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        procs.append(proc)
        return proc

    yield _spawn

    for proc in procs:
        if proc.poll() is None:
            proc.kill()
            proc.communicate()


@pytest.fixture
def fake_tool(tmp_path: Path):
    """Write an executable shell script and return its path."""

    def _make(name: str, body: str) -> Path:
        path = tmp_path / "bin" / name
        path.parent.mkdir(exist_ok=True)
        path.write_text(f"#!/bin/sh\n{body}\n")
        path.chmod(0o755)
        return path

    return _make
