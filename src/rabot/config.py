"""Configuration management for rabot."""

import os
import tempfile
import tomllib
from enum import Enum
from pathlib import Path

import tomli_w
from pydantic import BaseModel, Field, ValidationError

from .constants import LOCK_POLL_INTERVAL
from .errors import PrerequisiteError

CONFIG_ENV = "RABOT_CONFIG"
LOCK_DIR_ENV = "RABOT_LOCK_DIR"

TEMPLATE_HEADER = """\
# rabot configuration. Every value shown is the default; delete a key to keep it.
#
# [locks]   dir: lock file directory ($RABOT_LOCK_DIR overrides the default)
#           poll_interval: seconds between attempts for --timeout waits
# [archive] format: tar.gz, tar.bz2, tar.xz or zip
# [crypt]   openssl enc settings (PBKDF2 iterations, output suffix)
# [logrun]  log_dir: where logrun writes <program>-<timestamp>.log

"""


class ArchiveFormat(str, Enum):
    """Archive formats understood by ``rabot archive``."""

    TAR_GZ = "tar.gz"
    TAR_BZ2 = "tar.bz2"
    TAR_XZ = "tar.xz"
    ZIP = "zip"

    @property
    def tar_flag(self) -> str | None:
        """Compression flag passed to tar, or None for zip."""
        return {
            ArchiveFormat.TAR_GZ: "-z",
            ArchiveFormat.TAR_BZ2: "-j",
            ArchiveFormat.TAR_XZ: "-J",
        }.get(self)


def default_lock_dir() -> Path:
    """Well-known directory holding one file per lock name."""
    override = os.environ.get(LOCK_DIR_ENV)
    if override:
        return Path(override)
    return Path(tempfile.gettempdir()) / "rabot-locks"


class LocksConfig(BaseModel):
    """Configuration for named locks."""

    dir: Path = Field(default_factory=default_lock_dir)
    poll_interval: float = Field(default=LOCK_POLL_INTERVAL, gt=0)


class ArchiveConfig(BaseModel):
    """Configuration for directory archiving."""

    format: ArchiveFormat = ArchiveFormat.TAR_GZ
    tar_exec: str = "tar"
    zip_exec: str = "zip"


class CryptConfig(BaseModel):
    """Configuration for the openssl encrypt/decrypt wrappers."""

    exec: str = "openssl"
    cipher: str = "aes-256-cbc"
    iterations: int = Field(default=100_000, gt=0)
    suffix: str = ".enc"


class LogrunConfig(BaseModel):
    """Configuration for the tee-to-logfile wrapper."""

    log_dir: Path = Field(
        default_factory=lambda: Path.home() / ".local" / "state" / "rabot" / "logs"
    )


class RabotConfig(BaseModel):
    """Root configuration for rabot."""

    locks: LocksConfig = Field(default_factory=LocksConfig)
    archive: ArchiveConfig = Field(default_factory=ArchiveConfig)
    crypt: CryptConfig = Field(default_factory=CryptConfig)
    logrun: LogrunConfig = Field(default_factory=LogrunConfig)


def default_config_path() -> Path:
    """Locate config.toml ($RABOT_CONFIG, then XDG config home)."""
    override = os.environ.get(CONFIG_ENV)
    if override:
        return Path(override)
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "rabot" / "config.toml"


def load_config(config_path: Path | None = None) -> RabotConfig:
    """Load config from TOML.

    Args:
        config_path: Explicit path, or None for the default location

    Returns:
        Loaded configuration, or defaults if the file doesn't exist

    Raises:
        PrerequisiteError: If the file exists but is not valid
    """
    path = config_path or default_config_path()
    if not path.exists():
        return RabotConfig()
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
        return RabotConfig.model_validate(data)
    except tomllib.TOMLDecodeError as e:
        raise PrerequisiteError(f"Invalid config file {path}: {e}") from e
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise PrerequisiteError(f"Invalid config file {path}: {problems}") from e


def write_config_template(config_path: Path) -> Path:
    """Write default config.toml template.

    Args:
        config_path: Where to write the template

    Returns:
        Path to the written config file
    """
    defaults = RabotConfig()
    template = {
        "locks": {
            "dir": str(defaults.locks.dir),
            "poll_interval": defaults.locks.poll_interval,
        },
        "archive": {
            "format": defaults.archive.format.value,
            "tar_exec": defaults.archive.tar_exec,
            "zip_exec": defaults.archive.zip_exec,
        },
        "crypt": defaults.crypt.model_dump(),
        "logrun": {"log_dir": str(defaults.logrun.log_dir)},
    }
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "wb") as f:
        f.write(TEMPLATE_HEADER.encode())
        tomli_w.dump(template, f)
    return config_path
