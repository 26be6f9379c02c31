"""Output verification command."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from siteassembler.cli.types import AppEnv


@click.command("verify")
@click.argument(
    "output",
    type=click.Path(path_type=Path),
    required=False,
)
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.pass_obj
def verify_command(env: AppEnv, output: Path | None, as_json: bool) -> None:
    """Check a built site for leaked files and a reachable configuration."""
    from siteassembler.config import load_settings
    from siteassembler.errors import SiteAssemblerError
    from siteassembler.verify import VerifyStatus, verify_output

    try:
        settings = load_settings()
    except SiteAssemblerError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise click.Abort() from exc

    target = output or settings.output_path
    report = verify_output(target, settings)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        for check in report.checks:
            click.echo(f"[{check.status}] {check.name}: {check.detail}")
            if check.status is not VerifyStatus.OK:
                for path in check.paths:
                    click.echo(f"    {path}")
        click.echo(
            f"{report.summary['ok']} ok, "
            f"{report.summary['warning']} warning(s), "
            f"{report.summary['error']} error(s)"
        )

    if not report.ok:
        raise SystemExit(1)


__all__ = ["verify_command"]
