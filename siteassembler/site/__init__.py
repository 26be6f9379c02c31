"""Static site assembly.

This package turns a website source tree into a deployable output tree:
- Top-level entries copied, minus the exclusion set
- HTML entry points optionally injected with runtime configuration or minified
- A configuration file shipped from the environment, a local fallback, or a stub
- A ``.nojekyll`` marker for the static host
"""

from siteassembler.site.builder import BuildResult, ConfigSource, SiteAssembler

__all__ = ["BuildResult", "ConfigSource", "SiteAssembler"]
