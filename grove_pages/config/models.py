"""Typed dataclasses describing grove site configuration structures."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from grove_pages._constants import (
    DEFAULT_TOC_MIN_HEADINGS,
    DOC_EXTENSIONS,
    INDEX_NAMES,
)

DateOrder = typ.Literal["ascending", "descending"]
DATE_ORDERS: tuple[DateOrder, ...] = ("ascending", "descending")


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class ContentSettings:
    """Rules that shape how source files become content nodes."""

    doc_extensions: tuple[str, ...] = DOC_EXTENSIONS
    index_names: tuple[str, ...] = INDEX_NAMES
    date_order: DateOrder = "descending"
    toc_min_headings: int = DEFAULT_TOC_MIN_HEADINGS


@dc.dataclass(slots=True)
class NavigationSettings:
    """Optional navigation aids rendered around each page."""

    breadcrumbs: bool = True
    page_links: bool = True


@dc.dataclass(slots=True)
class ThemeConfig:
    """Visual theming applied to generated pages."""

    site_name: str = "Grove"
    tagline: str = ""
    footer_note: str = ""


@dc.dataclass(slots=True)
class SiteConfig:
    """Fully resolved build configuration.

    Attributes
    ----------
    title : str
        Site title used in page ``<title>`` elements.
    base_url : str
        Prefix applied to every generated URL.
    output_dir : Path
        Directory the site is written to.
    clean : bool
        Remove the output directory before writing.
    workers : int
        Upper bound on concurrent page workers.
    strict : bool
        Treat broken references as build failures.
    pygments_style : str
        Pygments style used for highlighted code blocks.
    content : ContentSettings
        Filename and outline rules.
    navigation : NavigationSettings
        Breadcrumb and previous/next link toggles.
    theme : ThemeConfig
        Page shell copy.
    """

    title: str = "Grove"
    base_url: str = "/"
    output_dir: Path = Path("public")
    clean: bool = False
    workers: int = 4
    strict: bool = True
    pygments_style: str = "monokai"
    content: ContentSettings = dc.field(default_factory=ContentSettings)
    navigation: NavigationSettings = dc.field(default_factory=NavigationSettings)
    theme: ThemeConfig = dc.field(default_factory=ThemeConfig)


__all__ = [
    "DATE_ORDERS",
    "ContentSettings",
    "DateOrder",
    "NavigationSettings",
    "SiteConfig",
    "SiteConfigError",
    "ThemeConfig",
]
