"""sigupdate CLI — Typer-based command-line interface.

Provides the ``sigupdate`` command with subcommands for updating the local
signature databases, inspecting their state, and showing the version.

All output uses Rich for formatted terminal display.
"""
