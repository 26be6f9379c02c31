"""Environment variable utilities with SITEASSEMBLER_* precedence.

This module provides helpers for reading environment variables with
site-assembler-specific prefixed versions taking precedence over global ones.
Every helper accepts an explicit ``environ`` mapping so a build can be run
against a captured environment instead of ``os.environ``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

ENV_PREFIX = "SITEASSEMBLER_"


def get_env(key: str, default: str | None = None, *, environ: Mapping[str, str] | None = None) -> str | None:
    """Get environment variable with SITEASSEMBLER_* precedence.

    Checks SITEASSEMBLER_{KEY} first, then {KEY}, then returns default.
    Values are stripped of surrounding whitespace; a value that is empty
    after stripping counts as unset.

    This lets a CI job override a secret for the site build without
    touching the global variable other tools read.

    Args:
        key: Environment variable name (without SITEASSEMBLER_ prefix)
        default: Default value if neither variable is set
        environ: Mapping to read from (defaults to ``os.environ``)

    Returns:
        Value from SITEASSEMBLER_{KEY}, {KEY}, or default (in that order)

    Examples:
        >>> get_env("SUPABASE_URL", environ={"SUPABASE_URL": " https://x.test "})
        'https://x.test'

        >>> get_env("SUPABASE_URL", environ={
        ...     "SUPABASE_URL": "https://global.test",
        ...     "SITEASSEMBLER_SUPABASE_URL": "https://site.test",
        ... })
        'https://site.test'

        >>> get_env("MISSING_VAR", "fallback", environ={})
        'fallback'
    """
    source = os.environ if environ is None else environ
    for name in (f"{ENV_PREFIX}{key}", key):
        value = (source.get(name) or "").strip()
        if value:
            return value
    return default


__all__ = ["ENV_PREFIX", "get_env"]
