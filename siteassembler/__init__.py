"""Site assembler - static site build pipeline.

Turns a website source tree into a deployable output directory and
delivers the browser's API configuration from the build environment.

Example:
    from siteassembler import SiteAssembler, load_settings

    settings = load_settings(source_dir="site", policy="external")
    result = SiteAssembler(settings=settings).build()
    print(result.config_source)
"""

from siteassembler.config import BuildSettings, Policy, RuntimeConfig, load_settings
from siteassembler.errors import BuildError, ConfigError, SiteAssemblerError
from siteassembler.site import BuildResult, ConfigSource, SiteAssembler
from siteassembler.verify import VerifyReport, verify_output

__all__ = [
    "BuildError",
    "BuildResult",
    "BuildSettings",
    "ConfigError",
    "ConfigSource",
    "Policy",
    "RuntimeConfig",
    "SiteAssembler",
    "SiteAssemblerError",
    "VerifyReport",
    "load_settings",
    "verify_output",
]
