"""``sigupdate update`` — bring the local signature databases up to date.

Resolves the mirror's current versions, reconciles main, daily and
bytecode in turn, and prints a summary of what was transferred. The first
unrecoverable error aborts the run with exit code 1.
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sigupdate.cli.common import build_config, configure_logging
from sigupdate.core.errors import SignatureUpdateError
from sigupdate.core.sync_run import update_signatures
from sigupdate.models.reports import SyncReport

console = Console()
logger = logging.getLogger(__name__)


def update_cmd(
    data_file_path: Path = typer.Option(
        None,
        "--data-file-path",
        "-d",
        help="Path to ClamAV data files. [default: /var/clamav/data]",
    ),
    download_mirror_url: str = typer.Option(
        None,
        "--download-mirror-url",
        "-m",
        help="URL to download signature updates from. [default: http://database.clamav.net]",
    ),
    diff_count_threshold: int = typer.Option(
        None,
        "--diff-count-threshold",
        "-t",
        min=0,
        max=65535,
        help="Number of diffs to download until we redownload the signature files. [default: 100]",
    ),
    txt_record: str = typer.Option(
        None,
        "--txt-record",
        help="Use this version record instead of resolving it from DNS.",
    ),
    sigtool: Path = typer.Option(
        None,
        "--sigtool",
        help="Path to the sigtool executable.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose mode with additional debugging information.",
    ),
) -> None:
    """Update the ClamAV signature databases from the download mirror."""
    try:
        config = build_config(
            data_file_path=data_file_path,
            download_mirror_url=download_mirror_url,
            diff_count_threshold=diff_count_threshold,
            txt_record=txt_record,
            sigtool=sigtool,
            verbose=verbose,
        )
    except OSError as exc:
        console.print(f"[bold red]Invalid data directory:[/bold red] {exc}")
        raise typer.Exit(code=1)
    except ValidationError as exc:
        console.print(f"[bold red]Invalid configuration:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    configure_logging(config.effective_log_level)

    try:
        report = update_signatures(config)
    except SignatureUpdateError as exc:
        logger.error("Signature update failed: %s", exc)
        console.print(f"[bold red]Signature update failed:[/bold red] {exc}")
        raise typer.Exit(code=1)

    print_report(report)


def print_report(report: SyncReport) -> None:
    """Render a per-signature summary table."""
    table = Table(title="Signature Update")
    table.add_column("Signature", style="cyan")
    table.add_column("Target", justify="right")
    table.add_column("Local", justify="right")
    table.add_column("Downloaded")
    table.add_column("Diffs Present", justify="right")
    table.add_column("Notes")

    for item in report.signatures:
        local = str(item.local_version) if item.local_version is not None else "-"
        downloaded = ", ".join(item.downloaded) or "[dim]none[/dim]"
        notes: list[str] = []
        if item.fallback_reason:
            notes.append("[yellow]full download fallback[/yellow]")
        if item.threshold_refresh:
            notes.append("[yellow]threshold refresh[/yellow]")
        table.add_row(
            item.name,
            str(item.target_version),
            local,
            downloaded,
            str(len(item.diffs_present)),
            "; ".join(notes),
        )

    console.print(table)
    console.print(f"[green]Update complete:[/green] {report.download_count} file(s) downloaded")
