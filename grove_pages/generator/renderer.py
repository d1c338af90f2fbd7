"""Markdown body rendering for note pages.

Bodies go through Python-Markdown with Pygments highlighting. Headings get
the same slugs the wiki-link resolver uses, so ``[[page#Some Heading]]``
style anchors written by hand line up with the generated ids.
"""

from __future__ import annotations

import re
import typing as typ
from html import escape

from markdown import Markdown
from pygments.formatters.html import HtmlFormatter

from grove_pages.content.normalizer import slugify

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from markdown.extensions import Extension
else:  # pragma: no cover - type-checking fallback
    Extension = typ.Any

HIGHLIGHT_CLASS = "codehilite"
FENCE_LINE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})(?P<info>[^\n]*)$", re.MULTILINE)
FENCED_BLOCK = re.compile(
    r"^(?P<fence>`{3,}|~{3,})(?P<lang>[\w+#.-]*)[^\n]*\n.*?^(?P=fence)[ \t]*$",
    re.DOTALL | re.MULTILINE,
)
LANGUAGE_NAME = re.compile(r"[\w+#.-]+")
HIGHLIGHT_OPEN_TAG = re.compile(rf'<div class="{HIGHLIGHT_CLASS}">')


def heading_id(value: str, separator: str) -> str:
    """Return the ``id`` the ``toc`` extension assigns to a heading."""
    return slugify(value).replace("-", separator) or "section"


def tidy_fences(text: str) -> str:
    """Unindent fence lines and drop comma-separated labels after the language.

    Editors commonly emit ```` ```python,title=x ```` or indent fences by a
    space or two; ``fenced_code`` recognises neither.
    """

    def _repl(match: re.Match[str]) -> str:
        fence, info = match.group("fence", "info")
        language, comma, _labels = info.partition(",")
        if comma and LANGUAGE_NAME.fullmatch(language):
            info = language
        return f"{fence}{info}"

    return FENCE_LINE.sub(_repl, text)


def fence_languages(text: str) -> list[str]:
    """Return the language of each fenced block in document order."""
    return [match.group("lang") or "text" for match in FENCED_BLOCK.finditer(text)]


class MarkdownRenderer:
    """Render note bodies to HTML with highlighted code and heading anchors.

    Parameters
    ----------
    pygments_style : str, optional
        Pygments style used both for highlighting and :attr:`stylesheet`.
    extensions : Sequence[Extension], optional
        Extra Markdown extensions, typically the relative link rewriter bound
        to the page being rendered.
    """

    def __init__(
        self,
        pygments_style: str = "monokai",
        extensions: cabc.Sequence[Extension] = (),
    ) -> None:
        self.pygments_style = pygments_style
        self._extensions: list[Extension | str] = [
            "fenced_code",
            "codehilite",
            "tables",
            "sane_lists",
            "toc",
            *extensions,
        ]

    @property
    def stylesheet(self) -> str:
        """Return the CSS rules for highlighted code blocks."""
        formatter = HtmlFormatter(style=self.pygments_style, cssclass=HIGHLIGHT_CLASS)
        return formatter.get_style_defs(f".{HIGHLIGHT_CLASS}")

    def render(self, text: str) -> str:
        """Return ``text`` rendered to HTML; blank input renders to ``""``."""
        source = tidy_fences(text)
        if not source.strip():
            return ""
        md = Markdown(
            extensions=self._extensions,
            extension_configs={
                "codehilite": {
                    "linenums": False,
                    "guess_lang": False,
                    "css_class": HIGHLIGHT_CLASS,
                    "pygments_style": self.pygments_style,
                },
                "toc": {"slugify": heading_id},
            },
        )
        return self._tag_languages(md.convert(source), fence_languages(source))

    @staticmethod
    def _tag_languages(html: str, languages: list[str]) -> str:
        """Add a ``data-language`` attribute to each highlighted block."""
        if not languages:
            return html
        remaining = iter(languages)

        def _repl(_match: re.Match[str]) -> str:
            language = escape(next(remaining, "text"), quote=True)
            return f'<div class="{HIGHLIGHT_CLASS}" data-language="{language}">'

        return HIGHLIGHT_OPEN_TAG.sub(_repl, html, len(languages))


__all__ = ["MarkdownRenderer", "fence_languages", "heading_id", "tidy_fences"]
