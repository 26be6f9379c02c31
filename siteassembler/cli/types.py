"""CLI types."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class AppEnv:
    verbose: bool = False
    json_logs: bool = False
