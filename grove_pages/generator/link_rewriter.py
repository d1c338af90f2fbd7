"""Rewrite relative Markdown links between source documents to site URLs.

Authors often link documents with ordinary Markdown syntax, pointing at the
source files themselves (``[setup](../02-setup.md#install)``). Those paths
stop working once filenames are normalized into slugs, so this extension
maps each relative link onto the node scanned from that file and substitutes
the node's public URL, keeping any query string and fragment.
"""

from __future__ import annotations

import posixpath
import typing as typ
from urllib.parse import unquote, urlsplit

from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

from grove_pages.content.normalizer import is_document
from grove_pages.content.tree import node_url
from grove_pages.diagnostics import DiagnosticKind

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from markdown import Markdown

    from grove_pages.content.tree import ContentNode, ContentTree
    from grove_pages.diagnostics import DiagnosticsCollector
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any

EXTERNAL_PREFIXES = ("http://", "https://", "mailto:", "tel:", "data:", "javascript:")


class RelativeLinkExtension(Extension):
    """Rewrite relative links to source documents into site URLs.

    Insert this extension into a ``markdown.Markdown`` instance rendering
    ``page`` so that intra-site links (``./intro.md``, ``../images/a.png``)
    point at the generated pages and copied attachments. Links to documents
    that were not scanned are recorded as broken references.
    """

    def __init__(
        self,
        tree: ContentTree,
        page: ContentNode,
        diagnostics: DiagnosticsCollector,
        *,
        base_url: str = "/",
        doc_extensions: tuple[str, ...] = (".md", ".markdown"),
    ) -> None:
        super().__init__()
        self.tree = tree
        self.page = page
        self.diagnostics = diagnostics
        self.base_url = base_url
        self.doc_extensions = doc_extensions

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the relative-link treeprocessor on the Markdown instance."""
        processor = RelativeLinkTreeprocessor(md, self)
        md.treeprocessors.register(processor, "grove_relative_links", 15)


class RelativeLinkTreeprocessor(Treeprocessor):
    """Point relative anchors and images at the nodes they were written for."""

    def __init__(self, md: Markdown, extension: RelativeLinkExtension) -> None:
        super().__init__(md)
        self.extension = extension

    def run(self, root: Element) -> Element:
        """Rewrite relative ``href`` and ``src`` attributes in the parsed tree."""
        for element in root.iter():
            attribute = {"a": "href", "img": "src"}.get(element.tag)
            if attribute is None:
                continue
            rewritten = self._rewrite(element.get(attribute))
            if rewritten:
                element.set(attribute, rewritten)
        return root

    def _rewrite(self, target: str | None) -> str | None:
        """Return the site URL for a relative link target, or ``None``."""
        if not target:
            return None
        lower = target.lower()
        if lower.startswith(EXTERNAL_PREFIXES) or target.startswith(("#", "//")):
            return None
        parsed = urlsplit(target)
        if parsed.scheme or parsed.netloc or not parsed.path:
            return None
        if parsed.path.startswith("/"):
            return None

        ext = self.extension
        page_dir = posixpath.dirname(ext.page.source_path)
        joined = posixpath.normpath(posixpath.join(page_dir, unquote(parsed.path)))
        if joined.startswith("../") or joined in ("..", "."):
            return None
        node = ext.tree.find_source(joined)
        if node is None:
            if is_document(joined, ext.doc_extensions):
                ext.diagnostics.record(
                    ext.page.output_path,
                    DiagnosticKind.BROKEN_LINK,
                    f"link to '{target}' does not match any page",
                )
            return None

        url = node_url(node, ext.base_url)
        if url is None:
            return None
        if parsed.query:
            url = f"{url}?{parsed.query}"
        if parsed.fragment:
            url = f"{url}#{parsed.fragment}"
        return url


__all__ = ["RelativeLinkExtension", "RelativeLinkTreeprocessor"]
