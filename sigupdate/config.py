"""Runtime configuration — env-driven, overridable from the CLI.

Reads from a .env file and SIGUPDATE_* environment variables. Command-line
options take precedence over both.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class UpdateConfig(BaseSettings):
    """Signature update settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export SIGUPDATE_DATA_FILE_PATH=/srv/clamav
        export SIGUPDATE_DIFF_COUNT_THRESHOLD=50
        export SIGUPDATE_DOWNLOAD_MIRROR_URL=https://mirror.example.org/clamav

    Or via .env file::

        SIGUPDATE_VERBOSE=true
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SIGUPDATE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Local store
    data_file_path: Path = Path("/var/clamav/data")
    scratch_dir: Path | None = None  # defaults to the destination directory

    # Mirror
    download_mirror_url: str = "http://database.clamav.net"
    mirror_domain: str = "current.cvd.clamav.net"
    txt_record: str | None = None  # bypasses DNS when set

    # Update policy
    diff_count_threshold: int = Field(default=100, ge=0, le=65535)

    # External collaborators
    sigtool_path: Path | None = None
    http_timeout_seconds: float = Field(default=60.0, gt=0)
    probe_timeout_seconds: float = Field(default=30.0, gt=0)
    dns_timeout_seconds: float = Field(default=10.0, gt=0)

    # Observability
    verbose: bool = False
    log_level: str = "INFO"

    @property
    def effective_log_level(self) -> str:
        """DEBUG when verbose, otherwise the configured level."""
        return "DEBUG" if self.verbose else self.log_level.upper()


def resolve_data_dir(path: Path) -> Path:
    """Validate the signature data directory and return its absolute path.

    Raises
    ------
    FileNotFoundError
        If the path does not exist.
    NotADirectoryError
        If the path is not a directory.
    PermissionError
        If the current user cannot write to it.
    """
    data_dir = path.expanduser().resolve()
    if not data_dir.exists():
        raise FileNotFoundError(
            f"Data file path doesn't exist or isn't accessible: {data_dir}"
        )
    if not data_dir.is_dir():
        raise NotADirectoryError(f"Data file path is not a directory: {data_dir}")
    if not os.access(data_dir, os.W_OK | os.X_OK):
        raise PermissionError(
            f"Data file path doesn't have write access for current user at path: {data_dir}"
        )
    return data_dir
