"""Helpers shared by the CLI commands: config assembly and logging setup."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

from sigupdate.config import UpdateConfig, resolve_data_dir


def configure_logging(level: str) -> None:
    """Route all log records through a Rich handler on stderr."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def build_config(
    *,
    data_file_path: Path | None = None,
    download_mirror_url: str | None = None,
    diff_count_threshold: int | None = None,
    txt_record: str | None = None,
    sigtool: Path | None = None,
    verbose: bool = False,
) -> UpdateConfig:
    """Merge CLI options over environment configuration.

    Options left unset on the command line keep their env/.env/default
    value. The data directory is validated and made absolute.
    """
    overrides: dict[str, Any] = {
        "data_file_path": data_file_path,
        "download_mirror_url": download_mirror_url,
        "diff_count_threshold": diff_count_threshold,
        "txt_record": txt_record,
        "sigtool_path": sigtool,
    }
    settings = {key: value for key, value in overrides.items() if value is not None}
    if verbose:
        settings["verbose"] = True

    config = UpdateConfig(**settings)
    data_dir = resolve_data_dir(config.data_file_path)
    return config.model_copy(update={"data_file_path": data_dir})
