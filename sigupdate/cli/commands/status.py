"""``sigupdate status`` — compare local signature versions with the mirror.

Probes each local database with sigtool and shows how many versions it
is behind. Nothing is downloaded.
"""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sigupdate.cli.common import build_config, configure_logging
from sigupdate.core.errors import SignatureUpdateError
from sigupdate.core.sync_run import version_source_for
from sigupdate.core.version_probe import SigtoolProbe, find_sigtool_path, inspect_local_file
from sigupdate.core.version_source import resolve_versions

console = Console()


def status_cmd(
    data_file_path: Path = typer.Option(
        None,
        "--data-file-path",
        "-d",
        help="Path to ClamAV data files. [default: /var/clamav/data]",
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
    """Show local and published versions for each tracked signature."""
    try:
        config = build_config(
            data_file_path=data_file_path,
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
        probe = SigtoolProbe(
            find_sigtool_path(config.sigtool_path),
            timeout_seconds=config.probe_timeout_seconds,
        )
        versions = resolve_versions(version_source_for(config))
    except SignatureUpdateError as exc:
        console.print(f"[bold red]Status check failed:[/bold red] {exc}")
        raise typer.Exit(code=1)

    table = Table(title="Signature Status")
    table.add_column("Signature", style="cyan")
    table.add_column("File")
    table.add_column("Target", justify="right")
    table.add_column("Local", justify="right")
    table.add_column("Behind", justify="right")
    table.add_column("State")

    for signature in versions.tracked():
        state = inspect_local_file(config.data_file_path / signature.filename, probe)
        if not state.exists:
            local, behind, label = "-", "-", "[red]missing[/red]"
        elif state.version is None:
            local, behind, label = "-", "-", f"[red]unverified[/red] ({state.error})"
        else:
            gap = signature.version - state.version
            local, behind = str(state.version), str(max(gap, 0))
            label = "[green]current[/green]" if gap <= 0 else "[yellow]outdated[/yellow]"
        table.add_row(
            signature.name,
            signature.filename,
            str(signature.version),
            local,
            behind,
            label,
        )

    console.print(table)
