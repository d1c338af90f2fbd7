"""Utilities for rendering, cross-linking, and generating grove site pages."""

from .link_rewriter import RelativeLinkExtension
from .models import BuildResult, PageModel, build_report
from .navigation import (
    NavigationRenderer,
    build_breadcrumbs,
    build_page_links,
    reading_order,
)
from .outline import HeadingNode, extract_outline, render_outline
from .renderer import MarkdownRenderer
from .site_generator import SiteGenerator
from .wikilinks import ReferenceToken, WikiLinkResolver, rewrite_references

__all__ = [
    "BuildResult",
    "HeadingNode",
    "MarkdownRenderer",
    "NavigationRenderer",
    "PageModel",
    "ReferenceToken",
    "RelativeLinkExtension",
    "SiteGenerator",
    "WikiLinkResolver",
    "build_breadcrumbs",
    "build_report",
    "build_page_links",
    "extract_outline",
    "reading_order",
    "render_outline",
    "rewrite_references",
]
