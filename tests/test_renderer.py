"""Tests for Markdown body rendering."""

from __future__ import annotations

from bs4 import BeautifulSoup

from grove_pages.generator.renderer import (
    MarkdownRenderer,
    fence_languages,
    tidy_fences,
)


def test_tidy_fences_unindents_and_drops_labels() -> None:
    text = "  ```python,title=setup.py\nprint(1)\n  ```\n"

    assert tidy_fences(text) == "```python\nprint(1)\n```\n"


def test_tidy_fences_keeps_attribute_lists() -> None:
    text = "```{ .python }\nprint(1)\n```\n"

    assert tidy_fences(text) == text


def test_fence_languages_default_to_text() -> None:
    text = "```python\nx = 1\n```\n\n~~~\nplain\n~~~\n"

    assert fence_languages(text) == ["python", "text"]


def test_highlighted_blocks_carry_their_language() -> None:
    html = MarkdownRenderer().render(
        "Intro\n\n```python\nx = 1\n```\n\n```\nplain\n```\n"
    )
    soup = BeautifulSoup(html, "html.parser")

    blocks = soup.select("div.codehilite")
    assert [block["data-language"] for block in blocks] == ["python", "text"]


def test_blank_body_renders_empty() -> None:
    assert MarkdownRenderer().render("  \n\n") == ""


def test_stylesheet_targets_highlight_class() -> None:
    assert ".codehilite" in MarkdownRenderer("friendly").stylesheet
