"""Command: reconcile both quirks feeds into Remote Settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from quirksync.commands._base import QsCommand

if TYPE_CHECKING:
    from quirksync.commands._context import AppContext


@click.command(
    cls=QsCommand,
    examples="""\
  quirksync
  quirksync sync
  quirksync sync --dry-run
  quirksync --json sync
  quirksync --log-json -v sync""",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Read upstream and destination, report planned writes, write nothing.",
)
@click.pass_obj
def sync(app: AppContext, dry_run: bool) -> None:
    """Sync related realms and password rules, flagging changes for review."""
    app.emit(app.runner(dry_run=dry_run).run())
