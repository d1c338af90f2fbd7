r"""Derive a nested table of contents from a page's rendered HTML.

Only ``h2``–``h4`` elements that carry an ``id`` take part; the Markdown
renderer's ``toc`` extension assigns those ids. Pages with fewer headings
than the configured minimum get no outline at all.

Example
-------
>>> from grove_pages.generator.outline import extract_outline
>>> html = '<h2 id="a">A</h2><h3 id="b">B</h3><h2 id="c">C</h2>'
>>> [(node.text, len(node.children)) for node in extract_outline(html)]
[('A', 1), ('C', 0)]
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ
from html import unescape

from markupsafe import Markup

from grove_pages._constants import DEFAULT_TOC_MIN_HEADINGS

from .templating import build_environment

if typ.TYPE_CHECKING:
    from jinja2 import Environment

HEADING_PATTERN = re.compile(
    r"<h(?P<level>[2-4])\b(?P<attrs>[^>]*)>(?P<body>.*?)</h(?P=level)\s*>",
    re.DOTALL | re.IGNORECASE,
)
ID_ATTRIBUTE_PATTERN = re.compile(r"""\bid\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)')""")
TAG_PATTERN = re.compile(r"<[^>]+>")


@dc.dataclass(slots=True)
class HeadingNode:
    """One heading in a page outline.

    Attributes
    ----------
    id : str
        Value of the heading's ``id`` attribute.
    text : str
        Heading text with nested markup removed.
    level : int
        Heading level, 2 to 4.
    children : list[HeadingNode]
        Headings nested beneath this one.
    """

    id: str
    text: str
    level: int
    children: list[HeadingNode] = dc.field(default_factory=list)


def _collect_headings(html: str) -> list[HeadingNode]:
    headings: list[HeadingNode] = []
    for match in HEADING_PATTERN.finditer(html):
        id_match = ID_ATTRIBUTE_PATTERN.search(match.group("attrs"))
        if not id_match:
            continue
        anchor = unescape(id_match.group("dq") or id_match.group("sq") or "")
        if not anchor:
            continue
        text = " ".join(unescape(TAG_PATTERN.sub("", match.group("body"))).split())
        headings.append(
            HeadingNode(id=anchor, text=text, level=int(match.group("level")))
        )
    return headings


def extract_outline(
    html: str, min_headings: int = DEFAULT_TOC_MIN_HEADINGS
) -> list[HeadingNode]:
    """Return the heading forest for ``html``.

    Parameters
    ----------
    html : str
        Rendered page HTML.
    min_headings : int, optional
        Fewest qualifying headings needed for an outline; defaults to 3.

    Returns
    -------
    list[HeadingNode]
        Top-level headings with nested children, or an empty list when the
        page has fewer than ``min_headings`` qualifying headings. A skipped
        level (``h2`` then ``h4``) nests one level deeper rather than failing.
    """
    headings = _collect_headings(html)
    if len(headings) < min_headings:
        return []
    forest: list[HeadingNode] = []
    stack: list[HeadingNode] = []
    for heading in headings:
        while stack and stack[-1].level >= heading.level:
            stack.pop()
        (stack[-1].children if stack else forest).append(heading)
        stack.append(heading)
    return forest


def render_outline(
    forest: list[HeadingNode], environment: Environment | None = None
) -> Markup:
    """Render ``forest`` with the ``toc.jinja`` partial; empty input renders ``""``."""
    if not forest:
        return Markup("")
    env = environment or build_environment()
    return Markup(env.get_template("toc.jinja").render(items=forest))


__all__ = ["HeadingNode", "extract_outline", "render_outline"]
