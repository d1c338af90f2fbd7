"""Tests for heading outline extraction and rendering."""

from __future__ import annotations

from bs4 import BeautifulSoup

from grove_pages.generator.outline import HeadingNode, extract_outline, render_outline
from grove_pages.generator.renderer import MarkdownRenderer


def _headings(*levels: int) -> str:
    return "".join(
        f'<h{level} id="h{idx}">Heading {idx}</h{level}>'
        for idx, level in enumerate(levels)
    )


def _shape(forest: list[HeadingNode]) -> list[tuple[str, list]]:
    return [(node.id, _shape(node.children)) for node in forest]


def test_levels_nest_into_sections() -> None:
    forest = extract_outline(_headings(2, 2, 3, 3, 2))

    assert _shape(forest) == [
        ("h0", []),
        ("h1", [("h2", []), ("h3", [])]),
        ("h4", []),
    ]


def test_two_headings_yield_no_outline() -> None:
    assert extract_outline(_headings(2, 3)) == []


def test_three_headings_yield_an_outline() -> None:
    assert len(extract_outline(_headings(2, 3, 2))) == 2


def test_minimum_is_configurable() -> None:
    assert extract_outline(_headings(2, 2), min_headings=2) != []
    assert extract_outline(_headings(2, 2, 2), min_headings=4) == []


def test_skipped_level_nests_one_deeper() -> None:
    forest = extract_outline(_headings(2, 4, 3))

    assert _shape(forest) == [("h0", [("h1", []), ("h2", [])])]


def test_headings_without_ids_and_outside_range_are_ignored() -> None:
    html = (
        '<h1 id="title">Title</h1>'
        "<h2>No id</h2>"
        '<h2 id="a">A</h2><h3 id="b">B</h3><h4 id="c">C</h4>'
        '<h5 id="d">D</h5>'
    )

    forest = extract_outline(html)

    assert _shape(forest) == [("a", [("b", [("c", [])])])]


def test_nested_markup_is_stripped_from_text() -> None:
    html = (
        '<h2 id="a">Use <code>grove</code> &amp; friends</h2>'
        '<h2 id="b">B</h2><h2 id="c">C</h2>'
    )

    assert extract_outline(html)[0].text == "Use grove & friends"


def test_rendered_markdown_headings_get_ids() -> None:
    html = MarkdownRenderer().render(
        "# Title\n\n## Getting Started\n\n### Install_Steps\n\n## FAQ\n"
    )

    forest = extract_outline(html)

    assert [node.id for node in forest] == ["getting-started", "faq"]
    assert forest[0].children[0].id == "install-steps"


def test_render_outline_links_every_heading() -> None:
    markup = render_outline(extract_outline(_headings(2, 3, 2)))
    soup = BeautifulSoup(markup, "html.parser")

    nav = soup.select_one("nav.toc")
    assert nav is not None
    assert [a["href"] for a in nav.select("a")] == ["#h0", "#h1", "#h2"]


def test_render_outline_empty_forest_is_empty() -> None:
    assert str(render_outline([])) == ""
