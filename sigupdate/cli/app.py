"""Main Typer application — imports and registers all CLI commands.

Entry point: ``sigupdate`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import typer

from sigupdate.cli.commands.status import status_cmd
from sigupdate.cli.commands.update import update_cmd

app = typer.Typer(
    name="sigupdate",
    help="sigupdate: keep ClamAV signature databases in sync with a mirror.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="update", help="Download new signatures and diffs from the mirror.")(update_cmd)
app.command(name="status", help="Compare local signature versions with the mirror.")(status_cmd)


@app.command(name="version", help="Display the version and exit.")
def version_cmd() -> None:
    """Print the program name, license and version."""
    from rich.console import Console

    from sigupdate import __version__

    console = Console()
    console.print("sigupdate")
    console.print()
    console.print("License        : MPLv2")
    console.print(f"Version        : {__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
