"""Click subcommands."""

from siteassembler.cli.commands.build import build_command
from siteassembler.cli.commands.verify import verify_command

__all__ = ["build_command", "verify_command"]
