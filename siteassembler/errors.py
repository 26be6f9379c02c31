"""Site assembler error hierarchy.

All project exceptions inherit from SiteAssemblerError, enabling:
- ``except SiteAssemblerError`` at the top-level boundary (CLI)
- Fine-grained catches deeper in the stack (``except BuildError``)

Hierarchy:
    SiteAssemblerError                      # this module
    ├── ConfigError                         # invalid build settings
    └── BuildError                          # fatal filesystem failure during a build
"""

from __future__ import annotations

from pathlib import Path


class SiteAssemblerError(Exception):
    """Base class for all site assembler errors."""


class ConfigError(SiteAssemblerError):
    """Build settings are invalid."""


class BuildError(SiteAssemblerError):
    """A build step failed and the build was aborted."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        message = super().__str__()
        if self.path is not None:
            return f"{message} ({self.path})"
        return message


__all__ = ["BuildError", "ConfigError", "SiteAssemblerError"]
