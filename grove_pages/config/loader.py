"""Load site configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from grove_pages._constants import CONFIG_FILENAME

from .helpers import (
    _build_content_settings,
    _build_navigation_settings,
    _build_theme_config,
    _coerce_bool,
    _coerce_int,
    _optional_str,
    _require_mapping,
)
from .models import SiteConfig, SiteConfigError


def discover_config(source_root: Path) -> Path | None:
    """Return the ``grove.yaml`` inside ``source_root`` when one exists."""
    candidate = source_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def load_site_config(path: Path | None) -> SiteConfig:
    """Load the YAML configuration describing how a site is built.

    Parameters
    ----------
    path : Path or None
        Filesystem path to the YAML configuration file (for example,
        ``grove.yaml``). ``None`` yields the built-in defaults.

    Returns
    -------
    SiteConfig
        Parsed configuration with defaults applied for omitted keys. Unknown
        keys are ignored.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    SiteConfigError
        If the top-level structure is not a mapping or a value has the wrong
        type (for example, ``workers: many``).
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from grove_pages.config import load_site_config
    >>> load_site_config(None).base_url
    '/'
    """
    if path is None:
        return SiteConfig()
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise SiteConfigError(msg)
    raw: dict[str, typ.Any] = dict(loaded)
    return _build_site_config(raw)


def _build_site_config(raw: typ.Mapping[str, typ.Any]) -> SiteConfig:
    """Build a SiteConfig from the top-level mapping, applying defaults."""
    base = SiteConfig()
    base_url = raw.get("base_url")
    output_dir = _optional_str(raw.get("output_dir"))
    return SiteConfig(
        title=_optional_str(raw.get("title")) or base.title,
        base_url=normalize_base_url(str(base_url))
        if base_url is not None
        else base.base_url,
        output_dir=Path(output_dir) if output_dir else base.output_dir,
        clean=_coerce_bool(raw.get("clean", base.clean), "clean"),
        workers=_coerce_int(raw.get("workers", base.workers), "workers", minimum=1),
        strict=_coerce_bool(raw.get("strict", base.strict), "strict"),
        pygments_style=_optional_str(raw.get("pygments_style")) or base.pygments_style,
        content=_build_content_settings(_require_mapping(raw.get("content"), "content")),
        navigation=_build_navigation_settings(
            _require_mapping(raw.get("navigation"), "navigation")
        ),
        theme=_build_theme_config(_require_mapping(raw.get("theme"), "theme")),
    )


def normalize_base_url(value: str) -> str:
    """Return ``value`` with exactly one trailing slash.

    Examples
    --------
    >>> normalize_base_url("/docs")
    '/docs/'
    >>> normalize_base_url("https://example.com")
    'https://example.com/'
    """
    stripped = value.strip()
    if not stripped:
        msg = "'base_url' must not be empty."
        raise SiteConfigError(msg)
    return stripped.rstrip("/") + "/"


__all__ = ["discover_config", "load_site_config", "normalize_base_url"]
