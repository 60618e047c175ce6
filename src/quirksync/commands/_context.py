"""AppContext — shared Click context for all commands.

Created once by the root CLI group and handed to subcommands via
``@click.pass_obj``. Owns logging setup, runner construction, and result
emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from quirksync.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    import httpx

    from quirksync.config.settings import SyncSettings
    from quirksync.services.result import ServiceResult
    from quirksync.services.runner import SyncRunner


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The transports are ``None`` in production. Tests pass in-memory ones
    through ``CliRunner.invoke(..., obj={...})``.
    """

    def __init__(
        self,
        settings: SyncSettings,
        *,
        storage_transport: httpx.BaseTransport | None = None,
        upstream_transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self._storage_transport = storage_transport
        self._upstream_transport = upstream_transport

        from quirksync.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    def runner(self, *, dry_run: bool = False) -> SyncRunner:
        """A fresh runner for one sync run."""
        from quirksync.services.runner import SyncRunner

        return SyncRunner(
            self.settings,
            dry_run=dry_run,
            storage_transport=self._storage_transport,
            upstream_transport=self._upstream_transport,
        )

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: stdout, normal return. Quiet mode repeats warnings on
          stderr since the status line drops them.
        * Failure: stderr, exit code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if settings.quiet and not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
