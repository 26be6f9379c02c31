"""Build settings using Pydantic Settings for automatic env var support."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError
from .lib.env import ENV_PREFIX, get_env
from .lib.log import get_logger
from .paths import DEFAULT_OUTPUT_NAME, MARKER_NAME, resolve_output_dir

logger = get_logger(__name__)

DEFAULT_FALLBACK_CONFIG = "config.js"
DEFAULT_CONFIG_GLOBAL = "CONFIG"
DEFAULT_URL_ENV = "SUPABASE_URL"
DEFAULT_KEY_ENV = "SUPABASE_KEY"

# Build tooling, manifests, VCS/CI metadata and docs never ship.
DEFAULT_EXCLUDE = (
    ".git",
    ".github",
    ".gitignore",
    ".venv",
    "__pycache__",
    "node_modules",
    "package.json",
    "package-lock.json",
    "pyproject.toml",
    "requirements.txt",
    "build.js",
    "build.py",
    "deploy.yml",
    "README.md",
)

_JS_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


class Policy(str, Enum):
    """How runtime configuration reaches the browser."""

    INLINE = "inline"
    EXTERNAL = "external"

    def __str__(self) -> str:
        return self.value


class BuildSettings(BaseSettings):
    """Settings for one assembler run."""

    source_dir: Path = Field(default=Path("."))
    output_dir: Path = Field(default=Path(DEFAULT_OUTPUT_NAME))
    policy: Policy = Field(default=Policy.INLINE)
    minify_html: Optional[bool] = Field(default=None)
    exclude: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    fallback_config_name: str = Field(default=DEFAULT_FALLBACK_CONFIG, min_length=1)
    marker_name: str = Field(default=MARKER_NAME, min_length=1)
    config_global: str = Field(default=DEFAULT_CONFIG_GLOBAL)
    url_env: str = Field(default=DEFAULT_URL_ENV, min_length=1)
    key_env: str = Field(default=DEFAULT_KEY_ENV, min_length=1)

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
    )

    @field_validator("source_dir", "output_dir", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v

    @field_validator("config_global")
    @classmethod
    def check_identifier(cls, v: str) -> str:
        if not _JS_IDENTIFIER_RE.match(v):
            raise ValueError(f"not a valid JavaScript identifier: {v!r}")
        return v

    @field_validator("fallback_config_name", "marker_name")
    @classmethod
    def check_plain_name(cls, v: str) -> str:
        if "/" in v or "\\" in v or v in {".", ".."}:
            raise ValueError(f"must be a plain file name: {v!r}")
        return v

    @model_validator(mode="after")
    def check_distinct_fields(self) -> BuildSettings:
        if self.url_env == self.key_env:
            raise ValueError("url_env and key_env must name different variables")
        return self

    @property
    def source_path(self) -> Path:
        return self.source_dir.resolve(strict=False)

    @property
    def output_path(self) -> Path:
        return resolve_output_dir(self.source_path, self.output_dir)

    @property
    def should_minify(self) -> bool:
        if self.minify_html is not None:
            return self.minify_html
        return self.policy is Policy.EXTERNAL

    def excluded_names(self) -> frozenset[str]:
        """Entry names dropped at every depth of the source tree.

        The output directory is kept out by path, not by name, so unrelated
        folders that happen to share its name still ship.
        """
        return frozenset(self.exclude)


def load_settings(**overrides: Any) -> BuildSettings:
    """Build settings from SITEASSEMBLER_* variables plus explicit overrides.

    ``None`` overrides are dropped so CLI options left unset fall through
    to the environment and defaults.
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return BuildSettings(**values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid build settings: {exc}") from exc


@dataclass(frozen=True)
class RuntimeConfig:
    """Endpoint URL and access key delivered to the browser.

    Both values are kept out of ``repr`` so the object can be logged.
    """

    url: str = field(default="", repr=False)
    key: str = field(default="", repr=False)

    @property
    def present(self) -> bool:
        return bool(self.url and self.key)

    @classmethod
    def from_env(cls, settings: BuildSettings, environ: Mapping[str, str] | None = None) -> RuntimeConfig:
        """Read the secret pair; a half-set pair counts as absent."""
        url = get_env(settings.url_env, environ=environ) or ""
        key = get_env(settings.key_env, environ=environ) or ""
        if bool(url) != bool(key):
            missing = settings.key_env if url else settings.url_env
            logger.warning("Only one runtime secret set (%s missing); treating configuration as absent", missing)
            return cls()
        return cls(url=url, key=key)

    def as_object(self, settings: BuildSettings) -> dict[str, str]:
        """Fields of the browser-side configuration object."""
        return {settings.url_env: self.url, settings.key_env: self.key}


__all__ = [
    "DEFAULT_EXCLUDE",
    "BuildSettings",
    "Policy",
    "RuntimeConfig",
    "load_settings",
]
