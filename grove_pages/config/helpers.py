"""Utility helpers shared by the grove configuration loader."""

from __future__ import annotations

import typing as typ

from .models import (
    DATE_ORDERS,
    ContentSettings,
    NavigationSettings,
    SiteConfigError,
    ThemeConfig,
)


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _require_mapping(value: object | None, key: str) -> typ.Mapping[str, typ.Any]:
    """Return ``value`` as a mapping, treating ``None`` as empty."""
    match value:
        case None:
            return {}
        case dict():
            return typ.cast("typ.Mapping[str, typ.Any]", value)
        case _:
            msg = f"'{key}' must be a mapping, got {type(value).__name__}."
            raise SiteConfigError(msg)


def _coerce_bool(value: object, key: str) -> bool:
    """Return ``value`` when it is a YAML boolean."""
    if isinstance(value, bool):
        return value
    msg = f"'{key}' must be true or false, got {value!r}."
    raise SiteConfigError(msg)


def _coerce_int(value: object, key: str, *, minimum: int = 0) -> int:
    """Return ``value`` as an integer no smaller than ``minimum``."""
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"'{key}' must be an integer, got {value!r}."
        raise SiteConfigError(msg)
    if value < minimum:
        msg = f"'{key}' must be at least {minimum}, got {value}."
        raise SiteConfigError(msg)
    return value


def _normalize_names(value: object, key: str, *, dotted: bool = False) -> tuple[str, ...]:
    """Normalize a string or list of strings into a lower-case tuple."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        msg = f"'{key}' must be a string or a list of strings."
        raise SiteConfigError(msg)
    names: list[str] = []
    for item in value:
        text = str(item).strip().lower()
        if not text:
            continue
        if dotted and not text.startswith("."):
            text = f".{text}"
        names.append(text)
    if not names:
        msg = f"'{key}' must name at least one entry."
        raise SiteConfigError(msg)
    return tuple(names)


def _build_content_settings(payload: typ.Mapping[str, typ.Any]) -> ContentSettings:
    """Build ContentSettings from the ``content`` mapping."""
    base = ContentSettings()
    date_order = payload.get("date_order", base.date_order)
    if date_order not in DATE_ORDERS:
        choices = ", ".join(DATE_ORDERS)
        msg = f"'content.date_order' must be one of {choices}, got {date_order!r}."
        raise SiteConfigError(msg)
    doc_extensions = base.doc_extensions
    if "doc_extensions" in payload:
        doc_extensions = _normalize_names(
            payload["doc_extensions"], "content.doc_extensions", dotted=True
        )
    index_names = base.index_names
    if "index_names" in payload:
        index_names = _normalize_names(payload["index_names"], "content.index_names")
    toc_min_headings = base.toc_min_headings
    if "toc_min_headings" in payload:
        toc_min_headings = _coerce_int(
            payload["toc_min_headings"], "content.toc_min_headings", minimum=1
        )
    return ContentSettings(
        doc_extensions=doc_extensions,
        index_names=index_names,
        date_order=date_order,
        toc_min_headings=toc_min_headings,
    )


def _build_navigation_settings(
    payload: typ.Mapping[str, typ.Any],
) -> NavigationSettings:
    """Build NavigationSettings from the ``navigation`` mapping."""
    base = NavigationSettings()
    return NavigationSettings(
        breadcrumbs=_coerce_bool(
            payload.get("breadcrumbs", base.breadcrumbs), "navigation.breadcrumbs"
        ),
        page_links=_coerce_bool(
            payload.get("page_links", base.page_links), "navigation.page_links"
        ),
    )


def _build_theme_config(payload: typ.Mapping[str, typ.Any]) -> ThemeConfig:
    """Build a ThemeConfig instance from the provided mapping payload."""
    base = ThemeConfig()
    return ThemeConfig(
        site_name=_optional_str(payload.get("site_name")) or base.site_name,
        tagline=_optional_str(payload.get("tagline")) or base.tagline,
        footer_note=_optional_str(payload.get("footer_note")) or base.footer_note,
    )


__all__ = [
    "_build_content_settings",
    "_build_navigation_settings",
    "_build_theme_config",
    "_coerce_bool",
    "_coerce_int",
    "_normalize_names",
    "_optional_str",
    "_require_mapping",
]
