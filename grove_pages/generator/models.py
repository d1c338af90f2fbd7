"""Shared dataclasses used by the site generation pipeline."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from grove_pages.diagnostics import DiagnosticKind

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from markupsafe import Markup

    from grove_pages.content.tree import ContentNode, ContentTree
    from grove_pages.diagnostics import Diagnostic, DiagnosticsCollector

    from .navigation import Breadcrumb, PageLinks


@dc.dataclass(slots=True)
class PageModel:
    """Structured data passed to the page shell template.

    Attributes
    ----------
    title : str
        Page title shown in the header.
    html_title : str
        Contents of the ``<title>`` element.
    url : str
        Public URL of the page.
    source_path : str
        Source document path relative to the source root.
    content_html : Markup
        Rendered body with references resolved.
    navigation_html : Markup
        Sidebar fragment with the page marked active.
    toc_html : Markup
        Outline fragment; empty when the page has too few headings.
    breadcrumbs : list[Breadcrumb]
        Trail from the site root; fewer than two crumbs are not shown.
    page_links : PageLinks
        Previous and next pages in reading order.
    declares_title : bool
        ``True`` when the body already starts with its own heading.
    """

    title: str
    html_title: str
    url: str
    source_path: str
    content_html: Markup
    navigation_html: Markup
    toc_html: Markup
    breadcrumbs: list[Breadcrumb]
    page_links: PageLinks
    declares_title: bool


@dc.dataclass(slots=True)
class PageOutcome:
    """Result of processing one page in a worker."""

    page: ContentNode
    written: Path | None
    diagnostics: DiagnosticsCollector


@dc.dataclass(slots=True)
class BuildResult:
    """Everything a finished build exposes to the CLI and tests.

    Attributes
    ----------
    tree : ContentTree
        The finalized content tree.
    written : list[Path]
        Files written, sorted by path (empty for check-only runs).
    diagnostics : list[Diagnostic]
        All diagnostics, sorted by page path.
    """

    tree: ContentTree
    written: list[Path]
    diagnostics: list[Diagnostic]

    @property
    def page_count(self) -> int:
        return len(self.tree.pages)

    def count(self, *kinds: DiagnosticKind) -> int:
        """Return how many diagnostics match ``kinds`` (all when empty)."""
        if not kinds:
            return len(self.diagnostics)
        return sum(1 for diag in self.diagnostics if diag.kind in kinds)

    def grouped(self) -> dict[str, list[Diagnostic]]:
        """Return diagnostics grouped by page path, in sorted order."""
        groups: dict[str, list[Diagnostic]] = {}
        for diag in self.diagnostics:
            groups.setdefault(diag.page_path, []).append(diag)
        return groups

    def exit_code(self, *, strict: bool) -> int:
        """Return the process exit status for this build.

        Failed pages always fail the build. Broken and ambiguous references
        fail it only when ``strict`` is set.
        """
        if self.count(DiagnosticKind.PAGE_FAILED):
            return 1
        if strict and self.count(
            DiagnosticKind.BROKEN_LINK, DiagnosticKind.AMBIGUOUS_LINK
        ):
            return 1
        return 0

    def to_report(self) -> dict[str, typ.Any]:
        """Return a JSON-ready summary of the build."""
        return build_report(self.page_count, self.written, self.diagnostics)


def build_report(
    pages: int, written: cabc.Iterable[Path], diagnostics: cabc.Iterable[Diagnostic]
) -> dict[str, typ.Any]:
    """Return the JSON-ready report shape shared by finished and aborted builds."""
    return {
        "pages": pages,
        "written": [path.as_posix() for path in written],
        "diagnostics": [
            {
                "page_path": diag.page_path,
                "kind": diag.kind.value,
                "detail": diag.detail,
            }
            for diag in diagnostics
        ],
    }


__all__ = ["BuildResult", "PageModel", "PageOutcome", "build_report"]
