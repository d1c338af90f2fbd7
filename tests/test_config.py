"""Tests for loading ``grove.yaml`` into typed configuration."""

from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from grove_pages.config import (
    SiteConfig,
    SiteConfigError,
    discover_config,
    load_site_config,
    normalize_base_url,
)


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "grove.yaml"
    path.write_text(dedent(text), encoding="utf-8")
    return path


def test_missing_path_yields_defaults() -> None:
    config = load_site_config(None)

    assert config == SiteConfig()
    assert config.content.doc_extensions == (".md", ".markdown")
    assert config.content.toc_min_headings == 3


def test_full_configuration_is_parsed(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
        title: Team Notes
        base_url: /notes
        output_dir: site
        clean: true
        workers: 8
        strict: false
        pygments_style: friendly
        content:
          doc_extensions: [md, .MDX]
          index_names: [Home]
          date_order: ascending
          toc_min_headings: 2
        navigation:
          breadcrumbs: false
        theme:
          site_name: Notes
          tagline: Shared knowledge
        unknown_key: ignored
        """,
    )

    config = load_site_config(path)

    assert config.title == "Team Notes"
    assert config.base_url == "/notes/"
    assert config.output_dir == Path("site")
    assert config.clean
    assert config.workers == 8
    assert not config.strict
    assert config.pygments_style == "friendly"
    assert config.content.doc_extensions == (".md", ".mdx")
    assert config.content.index_names == ("home",)
    assert config.content.date_order == "ascending"
    assert config.content.toc_min_headings == 2
    assert not config.navigation.breadcrumbs
    assert config.navigation.page_links
    assert config.theme.site_name == "Notes"
    assert config.theme.tagline == "Shared knowledge"
    assert config.theme.footer_note == ""


def test_empty_file_yields_defaults(tmp_path: Path) -> None:
    assert load_site_config(_write(tmp_path, "")) == SiteConfig()


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_site_config(tmp_path / "absent.yaml")


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("- a\n- b\n", "must be a mapping"),
        ("workers: many\n", "'workers' must be an integer"),
        ("workers: 0\n", "'workers' must be at least 1"),
        ("clean: sometimes\n", "'clean' must be true or false"),
        ("content: [a]\n", "'content' must be a mapping"),
        ("content:\n  date_order: sideways\n", "content.date_order"),
        ("content:\n  doc_extensions: []\n", "content.doc_extensions"),
        ("base_url: '  '\n", "'base_url' must not be empty"),
    ],
)
def test_invalid_values_raise(tmp_path: Path, text: str, message: str) -> None:
    with pytest.raises(SiteConfigError, match=message):
        load_site_config(_write(tmp_path, text))


def test_discover_config(tmp_path: Path) -> None:
    assert discover_config(tmp_path) is None
    path = _write(tmp_path, "title: x\n")
    assert discover_config(tmp_path) == path


@pytest.mark.parametrize(
    ("value", "expected"),
    [("/", "/"), ("/docs", "/docs/"), ("/docs///", "/docs/"), ("", None)],
)
def test_normalize_base_url(value: str, expected: str | None) -> None:
    if expected is None:
        with pytest.raises(SiteConfigError):
            normalize_base_url(value)
    else:
        assert normalize_base_url(value) == expected
