"""Site assembler: turns a source tree into a deployable static site.

One build is a single linear pass:

1. reset the output directory,
2. copy every top-level source entry that is not excluded, transforming
   HTML entry points on the way,
3. deliver the runtime configuration and write the hosting marker file.

Runtime configuration (endpoint URL and access key) comes from the
environment. When it is absent the locally committed configuration file
is shipped instead, or an empty stub when there is none, so the browser
can always load a configuration object and never sees a mix of local and
live values.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from siteassembler.config import BuildSettings, Policy, RuntimeConfig
from siteassembler.errors import BuildError
from siteassembler.lib.log import get_logger, register_secret
from siteassembler.paths import is_within_root, same_path
from siteassembler.site.html import (
    InjectionPoint,
    inject_config,
    minify_html,
    render_config_file,
    render_config_script,
)

logger = get_logger(__name__)


class ConfigSource(str, Enum):
    """Where the shipped configuration object came from."""

    ENVIRONMENT = "environment"
    FALLBACK_FILE = "fallback-file"
    STUB = "stub"

    def __str__(self) -> str:
        return self.value


@dataclass
class BuildResult:
    """Outcome of one build; never holds secret values."""

    output_dir: Path
    policy: Policy
    config_source: ConfigSource | None = None
    files_copied: int = 0
    directories_copied: int = 0
    html_pages: int = 0
    excluded: list[str] = field(default_factory=list)
    injections: dict[str, InjectionPoint] = field(default_factory=dict)

    def summary_lines(self) -> list[str]:
        lines = [
            f"Output: {self.output_dir}",
            f"Policy: {self.policy}",
            f"Configuration: {self.config_source}",
            f"Copied: {self.files_copied} files, {self.directories_copied} directories, {self.html_pages} HTML pages",
        ]
        if self.excluded:
            lines.append(f"Excluded: {', '.join(self.excluded)}")
        for name, point in self.injections.items():
            lines.append(f"Injected into {name} at {point}")
        return lines


@contextmanager
def _fs_step(message: str, path: Path) -> Iterator[None]:
    try:
        yield
    except OSError as exc:
        raise BuildError(f"{message}: {exc.strerror or exc}", path=path) from exc


class SiteAssembler:
    """Build a deployable output tree from a source tree.

    Output layout mirrors the top level of the source directory minus the
    exclusion set, plus:
    - the configuration file (``config.js`` by default) unless the
      configuration was injected inline from the environment
    - ``.nojekyll`` so dot-prefixed paths are served by the host
    """

    def __init__(
        self,
        settings: BuildSettings | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the assembler.

        Args:
            settings: Build settings (defaults read from SITEASSEMBLER_* variables)
            environ: Environment to read runtime secrets from (defaults to os.environ)
        """
        self.settings = settings or BuildSettings()
        self.runtime = RuntimeConfig.from_env(self.settings, environ)
        self.source_dir = self.settings.source_path
        self.output_dir = self.settings.output_path
        self._excluded = self.settings.excluded_names()

        if self.runtime.present:
            register_secret(self.runtime.url)
            register_secret(self.runtime.key)

    def build(self) -> BuildResult:
        """Run the full build.

        Raises:
            BuildError: the source directory is missing or any filesystem
                operation failed. The output directory may be partially
                written in that case; the next build starts from scratch.
        """
        if not self.source_dir.is_dir():
            raise BuildError("Source directory not found", path=self.source_dir)

        result = BuildResult(output_dir=self.output_dir, policy=self.settings.policy)
        self._log_config_path()

        self.reset_output()
        for entry in self.iter_source_entries(result):
            if entry.is_dir():
                self._copy_directory(entry)
                result.directories_copied += 1
            elif entry.is_file():
                self._process_file(entry, result)
            else:
                logger.warning("Skipping %s: not a regular file or directory", entry.name)

        result.config_source = self._deliver_config(result)
        self._write_marker()
        logger.info(
            "Build complete",
            output=str(self.output_dir),
            files=result.files_copied,
            directories=result.directories_copied,
            html=result.html_pages,
        )
        return result

    def reset_output(self) -> None:
        """Delete the output directory if present and recreate it empty."""
        if is_within_root(self.source_dir, self.output_dir):
            raise BuildError(
                "Refusing to reset an output directory that contains the source tree",
                path=self.output_dir,
            )
        if self.output_dir.is_symlink() or self.output_dir.is_file():
            with _fs_step("Could not remove output path", self.output_dir):
                self.output_dir.unlink()
        elif self.output_dir.exists():
            with _fs_step("Could not remove output directory", self.output_dir):
                shutil.rmtree(self.output_dir)
        with _fs_step("Could not create output directory", self.output_dir):
            self.output_dir.mkdir(parents=True)
        logger.debug("Output directory reset", path=str(self.output_dir))

    def iter_source_entries(self, result: BuildResult | None = None) -> Iterator[Path]:
        """Yield top-level source entries that are not excluded, sorted by name."""
        with _fs_step("Could not list source directory", self.source_dir):
            entries = sorted(self.source_dir.iterdir(), key=lambda p: p.name)
        for entry in entries:
            if entry.name in self._excluded or same_path(entry, self.output_dir):
                logger.debug("Excluded %s", entry.name)
                if result is not None:
                    result.excluded.append(entry.name)
                continue
            yield entry

    def _ignore(self, directory: str, names: list[str]) -> set[str]:
        ignored = {name for name in names if name in self._excluded}
        parent = Path(directory)
        if is_within_root(self.output_dir, parent):
            ignored.update(name for name in names if same_path(parent / name, self.output_dir))
        return ignored

    def _copy_directory(self, entry: Path) -> None:
        with _fs_step("Could not copy directory", entry):
            shutil.copytree(entry, self.output_dir / entry.name, ignore=self._ignore)

    def _copy_file(self, entry: Path) -> None:
        with _fs_step("Could not copy file", entry):
            shutil.copy2(entry, self.output_dir / entry.name)

    def _process_file(self, entry: Path, result: BuildResult) -> None:
        if entry.name == self.settings.fallback_config_name:
            # Shipped (or replaced) by _deliver_config.
            return
        if entry.suffix.lower() == ".html":
            point = self._process_html(entry)
            result.html_pages += 1
            if point is not None:
                result.injections[entry.name] = point
            return
        self._copy_file(entry)
        result.files_copied += 1

    def _process_html(self, entry: Path) -> InjectionPoint | None:
        with _fs_step("Could not read HTML file", entry):
            raw = entry.read_bytes()

        inject = self.settings.policy is Policy.INLINE and self.runtime.present
        if not inject and not self.settings.should_minify:
            self._write_bytes(self.output_dir / entry.name, raw)
            return None

        try:
            html = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BuildError(f"HTML file is not valid UTF-8: {exc.reason}", path=entry) from exc

        point = None
        if inject:
            script = render_config_script(
                self.settings.config_global,
                self.runtime.as_object(self.settings),
            )
            html, point = inject_config(html, script, config_name=self.settings.fallback_config_name)
            if point.is_fallback:
                logger.warning(
                    "No config placeholder in %s; injected configuration at %s",
                    entry.name,
                    point,
                )
            else:
                logger.info("Injected runtime configuration into %s (%s)", entry.name, point)
        if self.settings.should_minify:
            html = minify_html(html)

        self._write_bytes(self.output_dir / entry.name, html.encode("utf-8"))
        return point

    def _deliver_config(self, result: BuildResult) -> ConfigSource:
        """Ship the configuration file the policy calls for."""
        name = self.settings.fallback_config_name
        target = self.output_dir / name
        local = self.source_dir / name

        if self.runtime.present:
            if self.settings.policy is Policy.EXTERNAL:
                content = render_config_file(
                    self.settings.config_global,
                    self.runtime.as_object(self.settings),
                )
                self._write_bytes(target, content.encode("utf-8"))
            return ConfigSource.ENVIRONMENT

        if local.is_file() and name not in self._excluded:
            self._copy_file(local)
            result.files_copied += 1
            return ConfigSource.FALLBACK_FILE

        stub = render_config_file(
            self.settings.config_global,
            RuntimeConfig().as_object(self.settings),
        )
        self._write_bytes(target, stub.encode("utf-8"))
        return ConfigSource.STUB

    def _log_config_path(self) -> None:
        policy = self.settings.policy
        name = self.settings.fallback_config_name
        if self.runtime.present:
            if policy is Policy.INLINE:
                logger.info("Runtime configuration found in environment; injecting into HTML")
            else:
                logger.info("Runtime configuration found in environment; writing %s", name)
        elif (self.source_dir / name).is_file():
            logger.warning("No runtime configuration in environment; shipping local %s", name)
        else:
            logger.warning("No runtime configuration in environment and no local %s; shipping empty stub", name)

    def _write_marker(self) -> None:
        self._write_bytes(self.output_dir / self.settings.marker_name, b"")

    def _write_bytes(self, path: Path, data: bytes) -> None:
        with _fs_step("Could not write output file", path):
            path.write_bytes(data)


__all__ = ["BuildResult", "ConfigSource", "SiteAssembler"]
