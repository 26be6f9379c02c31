"""Post-build verification of an output tree."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from siteassembler.config import BuildSettings
from siteassembler.site.html import references_config


class VerifyStatus(str, Enum):
    """Status levels for verification checks."""
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


@dataclass
class VerifyResult:
    """Result of a single verification check."""
    name: str
    status: VerifyStatus
    count: int = 0
    detail: str = ""
    paths: list[str] = field(default_factory=list)


@dataclass
class VerifyReport:
    """Full verification report."""
    checks: list[VerifyResult]
    summary: dict[str, int]  # {ok: N, warning: N, error: N}

    @property
    def ok(self) -> bool:
        return self.summary.get(VerifyStatus.ERROR.value, 0) == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "checks": [
                {
                    "name": c.name,
                    "status": c.status.value,
                    "count": c.count,
                    "detail": c.detail,
                    "paths": c.paths,
                }
                for c in self.checks
            ],
            "summary": self.summary,
        }


def _inline_config_re(global_name: str) -> re.Pattern[str]:
    return re.compile(rf"window\.{re.escape(global_name)}\s*=")


def verify_output(output_dir: Path, settings: BuildSettings | None = None) -> VerifyReport:
    """Check a built tree against the assembler's output guarantees."""
    settings = settings or BuildSettings()
    output_dir = Path(output_dir)
    checks: list[VerifyResult] = []

    if not output_dir.is_dir():
        checks.append(VerifyResult(
            name="output_exists",
            status=VerifyStatus.ERROR,
            detail=f"{output_dir} is not a directory",
        ))
        return _report(checks)

    # 1. Excluded names anywhere in the tree
    excluded = settings.excluded_names()
    leaked = sorted(
        path.relative_to(output_dir).as_posix()
        for path in output_dir.rglob("*")
        if path.name in excluded
    )
    checks.append(VerifyResult(
        name="excluded_entries",
        status=VerifyStatus.ERROR if leaked else VerifyStatus.OK,
        count=len(leaked),
        detail=f"{len(leaked)} excluded entries shipped" if leaked else "none shipped",
        paths=leaked,
    ))

    # 2. Hosting marker
    marker = output_dir / settings.marker_name
    checks.append(VerifyResult(
        name="marker_file",
        status=VerifyStatus.OK if marker.is_file() else VerifyStatus.ERROR,
        detail=settings.marker_name if marker.is_file() else f"{settings.marker_name} missing",
    ))

    # 3. Configuration object reachable, no dangling references
    pages = sorted(p for p in output_dir.glob("*.html") if p.is_file())
    config_file = output_dir / settings.fallback_config_name
    inline_re = _inline_config_re(settings.config_global)
    inline_pages: list[str] = []
    dangling: list[str] = []
    for page in pages:
        html = page.read_text(encoding="utf-8", errors="replace")
        if inline_re.search(html):
            inline_pages.append(page.name)
        if references_config(html, settings.fallback_config_name) and not config_file.is_file():
            dangling.append(page.name)

    if config_file.is_file():
        detail = f"{settings.fallback_config_name} shipped"
        status = VerifyStatus.OK
    elif inline_pages:
        detail = f"inline in {len(inline_pages)} page(s)"
        status = VerifyStatus.OK
    else:
        detail = "no configuration object in output"
        status = VerifyStatus.ERROR
    checks.append(VerifyResult(
        name="config_object",
        status=status,
        count=len(inline_pages) + (1 if config_file.is_file() else 0),
        detail=detail,
        paths=inline_pages,
    ))
    checks.append(VerifyResult(
        name="config_references",
        status=VerifyStatus.ERROR if dangling else VerifyStatus.OK,
        count=len(dangling),
        detail=(
            f"{len(dangling)} page(s) reference missing {settings.fallback_config_name}"
            if dangling else "all references resolved"
        ),
        paths=dangling,
    ))

    # 4. Something to serve
    checks.append(VerifyResult(
        name="html_pages",
        status=VerifyStatus.OK if pages else VerifyStatus.WARNING,
        count=len(pages),
        detail=f"{len(pages)} top-level page(s)",
    ))

    return _report(checks)


def _report(checks: list[VerifyResult]) -> VerifyReport:
    summary = {status.value: 0 for status in VerifyStatus}
    for check in checks:
        summary[check.status.value] += 1
    return VerifyReport(checks=checks, summary=summary)


__all__ = ["VerifyReport", "VerifyResult", "VerifyStatus", "verify_output"]
