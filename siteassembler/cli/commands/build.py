"""Site build command."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from siteassembler.config import Policy

if TYPE_CHECKING:
    from siteassembler.cli.types import AppEnv


@click.command("build")
@click.option(
    "--source", "-s",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Website source directory (default: current directory)",
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output directory, relative to the source directory (default: public)",
)
@click.option(
    "--policy",
    type=click.Choice([p.value for p in Policy]),
    default=None,
    help="Configuration delivery: inline injection or external config file (default: inline)",
)
@click.option(
    "--minify/--no-minify",
    default=None,
    help="Minify HTML (default: on for external, off for inline)",
)
@click.pass_obj
def build_command(
    env: AppEnv,
    source: Path | None,
    output: Path | None,
    policy: str | None,
    minify: bool | None,
) -> None:
    """Assemble the deployable site.

    Copies the source tree into the output directory, skipping build
    tooling and repository metadata, and delivers the API configuration
    from SUPABASE_URL / SUPABASE_KEY. Without those variables the local
    config.js (or an empty stub) is shipped instead.

    \b
    Examples:
        siteassembler build                      # Build ./ into ./public
        siteassembler build -o dist              # Custom output directory
        siteassembler build --policy external    # Always ship config.js
    """
    from siteassembler.config import load_settings
    from siteassembler.errors import SiteAssemblerError
    from siteassembler.site import SiteAssembler

    try:
        settings = load_settings(
            source_dir=source,
            output_dir=output,
            policy=policy,
            minify_html=minify,
        )
        builder = SiteAssembler(settings=settings)
        click.echo(f"Building site from {builder.source_dir}...")
        result = builder.build()
    except SiteAssemblerError as exc:
        click.echo(f"Error building site: {exc}", err=True)
        raise click.Abort() from exc

    for line in result.summary_lines():
        click.echo(line)
    click.echo("Build finished.")


__all__ = ["build_command"]
