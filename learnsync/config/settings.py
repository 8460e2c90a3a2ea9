"""Configuration utilities for learnsync."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..exceptions import ConfigurationError
from .constants import (
    AUTO_BACKUP_INTERVAL_SECONDS,
    DEFAULT_BLOB_DIR_NAME,
    DEFAULT_DATA_DIR,
    ENV_BACKUP_INTERVAL,
    ENV_DATA_DIR,
    ENV_REMOTE_DIR,
    ENV_USER,
)


@dataclass
class Settings:
    """Resolved runtime settings for the CLI composition root."""

    data_dir: Path
    remote_dir: Optional[Path]
    user: Optional[str]
    backup_interval_seconds: float

    @property
    def blob_dir(self) -> Path:
        return self.data_dir / DEFAULT_BLOB_DIR_NAME


def get_data_dir(override: Optional[Path] = None) -> Path:
    """Get the local data directory, respecting LEARNSYNC_DATA_DIR.

    When running tests, set LEARNSYNC_DATA_DIR to a temp directory to keep
    tests away from the real data.
    """
    if override is not None:
        return override
    env_dir = os.environ.get(ENV_DATA_DIR)
    if env_dir:
        return Path(env_dir)
    return DEFAULT_DATA_DIR


def get_remote_dir(override: Optional[Path] = None) -> Optional[Path]:
    """Get the remote mirror directory, or None when no remote is configured."""
    if override is not None:
        return override
    env_dir = os.environ.get(ENV_REMOTE_DIR)
    return Path(env_dir) if env_dir else None


def get_backup_interval(override: Optional[float] = None) -> float:
    """Get the auto-backup interval in seconds.

    Raises:
        ConfigurationError: If the value is not a positive number.
    """
    if override is not None:
        raw: object = override
    else:
        raw = os.environ.get(ENV_BACKUP_INTERVAL, AUTO_BACKUP_INTERVAL_SECONDS)
    try:
        interval = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ConfigurationError(
            "Backup interval must be a number", name=ENV_BACKUP_INTERVAL, value=raw
        ) from None
    if interval <= 0:
        raise ConfigurationError(
            "Backup interval must be positive", name=ENV_BACKUP_INTERVAL, value=raw
        )
    return interval


def load_settings(
    data_dir: Optional[Path] = None,
    remote_dir: Optional[Path] = None,
    user: Optional[str] = None,
    backup_interval: Optional[float] = None,
) -> Settings:
    """Resolve settings from explicit overrides, then environment, then defaults."""
    return Settings(
        data_dir=get_data_dir(data_dir),
        remote_dir=get_remote_dir(remote_dir),
        user=user or os.environ.get(ENV_USER) or None,
        backup_interval_seconds=get_backup_interval(backup_interval),
    )
