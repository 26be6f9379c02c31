"""Shared filesystem paths and helpers for the site assembler."""

from __future__ import annotations

from pathlib import Path

DEFAULT_OUTPUT_NAME = "public"
MARKER_NAME = ".nojekyll"


def resolve_output_dir(source_dir: Path, output_dir: Path) -> Path:
    """Return the output directory, anchoring relative paths at source_dir."""
    output_dir = Path(output_dir).expanduser()
    if not output_dir.is_absolute():
        output_dir = Path(source_dir) / output_dir
    return output_dir.resolve(strict=False)


def is_within_root(path: Path, root: Path) -> bool:
    """Return True if path resolves within root."""
    try:
        path.resolve(strict=False).relative_to(root.resolve(strict=False))
    except ValueError:
        return False
    return True


def same_path(a: Path, b: Path) -> bool:
    return a.resolve(strict=False) == b.resolve(strict=False)


__all__ = [
    "DEFAULT_OUTPUT_NAME",
    "MARKER_NAME",
    "is_within_root",
    "resolve_output_dir",
    "same_path",
]
