"""Load and validate site configuration YAML for grove builds.

This subpackage parses an optional ``grove.yaml`` file found in the source
directory (or passed explicitly), applies defaults for every omitted key, and
produces typed dataclasses (:class:`SiteConfig`, :class:`ContentSettings`,
etc.) that the tree builder, resolver, and generator consume. Command-line
flags are layered on top by the CLI.

Examples
--------
>>> from pathlib import Path
>>> from grove_pages.config import load_site_config
>>> site = load_site_config(Path("notes/grove.yaml"))  # doctest: +SKIP
>>> site.content.date_order  # doctest: +SKIP
'descending'
"""

from .loader import discover_config, load_site_config, normalize_base_url
from .models import (
    ContentSettings,
    NavigationSettings,
    SiteConfig,
    SiteConfigError,
    ThemeConfig,
)

__all__ = [
    "ContentSettings",
    "NavigationSettings",
    "SiteConfig",
    "SiteConfigError",
    "ThemeConfig",
    "discover_config",
    "load_site_config",
    "normalize_base_url",
]
