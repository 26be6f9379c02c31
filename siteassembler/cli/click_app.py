"""CLI entrypoint."""
from __future__ import annotations

import click

from siteassembler.cli.commands import build_command, verify_command
from siteassembler.cli.types import AppEnv
from siteassembler.lib.log import configure_logging


@click.group(context_settings={"help_option_names": ["-h", "--help"]}, invoke_without_command=True)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, json_logs: bool) -> None:
    """Static site assembler.

    Runs `build` when no command is given.
    """
    configure_logging(verbose=verbose, json_logs=json_logs)
    ctx.obj = AppEnv(verbose=verbose, json_logs=json_logs)
    if ctx.invoked_subcommand is None:
        ctx.invoke(build_command)


cli.add_command(build_command)
cli.add_command(verify_command)


def main() -> None:
    cli()


__all__ = ["cli", "main"]
