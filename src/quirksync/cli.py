"""Root CLI group for quirksync with global flags and command registration.

Invoked without a subcommand, the group runs ``sync`` so the scheduled
job needs no arguments.
"""

from __future__ import annotations

import click

from quirksync import __version__
from quirksync.commands import register_commands
from quirksync.commands._context import AppContext
from quirksync.config.settings import SyncSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="quirksync")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and planned writes.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """quirksync — password-manager quirks to Remote Settings."""
    overrides = ctx.ensure_object(dict)
    settings = SyncSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(
        settings,
        storage_transport=overrides.get("storage_transport"),
        upstream_transport=overrides.get("upstream_transport"),
    )
    if ctx.invoked_subcommand is None:
        from quirksync.commands.sync import sync

        ctx.invoke(sync)


register_commands(cli)


def main() -> None:
    cli()
