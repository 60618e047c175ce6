"""Subcommand modules for quirksync.

Provides register_commands(), which imports command modules lazily so
``quirksync --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all commands on the root CLI group."""
    from quirksync.commands.sync import sync

    cli.add_command(sync)
