"""Configuration management for pyocsync.

Values are looked up in the environment first and then in the user's
config file (``~/.config/pyocsync/config``, dotenv ``KEY=VALUE`` lines).
"""

import logging
import os
from importlib.resources import files
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values

from .utils import DEFAULT_DAV_PATH, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

# Default exclude list installed with the package
DEFAULT_SYSTEM_EXCLUDE_FILE = str(files("pyocsync").joinpath("sync-exclude.lst"))
DEFAULT_RCLONE_PATH = "rclone"


class Config:
    """Read-only view over environment variables and the config file."""

    def __init__(self, config_file: Optional[Path] = None):
        if config_file is None:
            config_file = Path.home() / ".config" / "pyocsync" / "config"
        self.config_file = config_file
        self._file_values: Optional[dict[str, str]] = None

    def _load_file(self) -> dict[str, str]:
        if self._file_values is not None:
            return self._file_values

        values: dict[str, str] = {}
        if self.config_file.exists():
            try:
                parsed = dotenv_values(self.config_file, encoding="utf-8")
            except OSError as e:
                logger.warning(f"Failed to read config file {self.config_file}: {e}")
            else:
                values = {k: v for k, v in parsed.items() if v is not None}
        self._file_values = values
        return values

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get a config value, preferring the environment over the file."""
        value = os.environ.get(key)
        if value:
            return value
        return self._load_file().get(key, default)

    def get_config_path(self) -> Path:
        """Get the path of the config file."""
        return self.config_file

    @property
    def system_exclude_file(self) -> str:
        """Path of the system-wide default exclude list."""
        return self.get("PYOCSYNC_SYSTEM_EXCLUDE_FILE") or DEFAULT_SYSTEM_EXCLUDE_FILE

    @property
    def rclone_path(self) -> str:
        """rclone executable used by the default sync engine."""
        return self.get("PYOCSYNC_RCLONE_PATH") or DEFAULT_RCLONE_PATH

    @property
    def dav_path(self) -> str:
        """WebDAV path appended to the server URL when not given."""
        return self.get("PYOCSYNC_DAV_PATH") or DEFAULT_DAV_PATH

    @property
    def timeout(self) -> float:
        """HTTP timeout in seconds for the OCS client."""
        raw = self.get("PYOCSYNC_TIMEOUT")
        if not raw:
            return DEFAULT_TIMEOUT
        try:
            return float(raw)
        except ValueError:
            logger.warning(f"Ignoring invalid PYOCSYNC_TIMEOUT value: {raw!r}")
            return DEFAULT_TIMEOUT


config = Config()
