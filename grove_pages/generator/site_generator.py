"""High-level orchestration for building a site from a source directory.

This module coordinates the whole build: scanning the source tree, assembling
the :class:`~grove_pages.content.ContentTree` (the one point every page waits
for), then rendering pages in a bounded thread pool. Each worker renders
Markdown, resolves ``[[...]]`` references, extracts the outline, renders the
navigation, and writes the page shell. Problems confined to one page are
recorded against that page and never stop the other workers.

Once the pages are written the build adds the site-wide files: a home page
copied from the first page when the source root has no index of its own, and
a ``404.html`` that shares the page shell.

Example
-------
>>> from pathlib import Path
>>> from grove_pages.config import SiteConfig
>>> from grove_pages.generator import SiteGenerator
>>> result = SiteGenerator(SiteConfig(), Path("notes")).run()  # doctest: +SKIP
>>> result.exit_code(strict=True)  # doctest: +SKIP
0
"""

from __future__ import annotations

import concurrent.futures as cf
import dataclasses as dc
import logging
import shutil
import typing as typ
from pathlib import Path

from markupsafe import Markup

from grove_pages._constants import HOME_FILENAME, NOT_FOUND_FILENAME, NOT_FOUND_TITLE
from grove_pages.content.scanner import extract_h1, scan_source, split_front_matter
from grove_pages.content.tree import (
    ContentTreeBuilder,
    display_title,
    node_url,
    output_file,
)
from grove_pages.diagnostics import DiagnosticKind, DiagnosticsCollector

from .link_rewriter import RelativeLinkExtension
from .models import BuildResult, PageModel, PageOutcome
from .navigation import (
    NavigationRenderer,
    PageLinks,
    build_breadcrumbs,
    build_page_links,
    reading_order,
)
from .outline import extract_outline, render_outline
from .renderer import MarkdownRenderer
from .templating import build_environment
from .wikilinks import WikiLinkResolver, rewrite_references

if typ.TYPE_CHECKING:
    from grove_pages.config import SiteConfig
    from grove_pages.content.tree import ContentNode, ContentTree

    from .outline import HeadingNode

logger = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class _BuildContext:
    """Read-only state shared by every page worker of one build."""

    tree: ContentTree
    ordered: list[ContentNode]
    resolver: WikiLinkResolver
    navigation: NavigationRenderer
    page_links: dict[str, PageLinks]


class SiteGenerator:
    """Build every page of a source directory into themed HTML."""

    def __init__(
        self,
        config: SiteConfig,
        source_root: Path,
        *,
        templates_dir: Path | None = None,
        write: bool = True,
    ) -> None:
        """Initialize the generator with configuration and template context.

        Parameters
        ----------
        config : SiteConfig
            Resolved site configuration, CLI overrides included.
        source_root : Path
            Directory holding the Markdown sources and attachments.
        templates_dir : Path, optional
            Directory containing Jinja templates; defaults to the package templates.
        write : bool, optional
            When ``False`` pages are rendered and references resolved, but
            nothing is written to disk.
        """
        self.config = config
        self.source_root = source_root
        self.write = write
        self.env = build_environment(templates_dir)
        self.template = self.env.get_template("page.jinja")
        self._stylesheet = MarkdownRenderer(config.pygments_style).stylesheet

    @property
    def output_dir(self) -> Path:
        return self.config.output_dir

    def build_tree(self) -> ContentTree:
        """Scan the source directory and assemble the finalized content tree.

        Raises
        ------
        SlugCollisionError
            If two siblings normalize to the same slug.
        """
        entries = scan_source(
            self.source_root, self.config.content, exclude=[self.output_dir]
        )
        return ContentTreeBuilder(self.config.content).build(entries)

    def run(self) -> BuildResult:
        """Build the site and return the written paths and diagnostics.

        Returns
        -------
        BuildResult
            The tree, the files written (sorted), and every diagnostic sorted
            by page path.

        Raises
        ------
        SlugCollisionError
            Raised before the output directory is touched when two siblings
            normalize to the same slug.
        """
        tree = self.build_tree()
        diagnostics = DiagnosticsCollector()
        diagnostics.extend(tree.warnings)

        written: list[Path] = []
        if self.write:
            self._prepare_output_dir()
            written.extend(self._copy_attachments(tree, diagnostics))

        context = self._build_context(tree)
        pages = tree.pages
        logger.debug(
            "rendering %d pages with %d workers", len(pages), self.config.workers
        )
        with cf.ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            futures = [
                executor.submit(self._process_page, page, context) for page in pages
            ]
            for future in cf.as_completed(futures):
                outcome = future.result()
                diagnostics.merge(outcome.diagnostics)
                if outcome.written is not None:
                    written.append(outcome.written)

        if self.write:
            written.extend(self._write_home_fallback(context, written, diagnostics))
            written.extend(self._write_not_found(context, written, diagnostics))

        return BuildResult(
            tree=tree,
            written=sorted(written),
            diagnostics=diagnostics.sorted(),
        )

    def _build_context(self, tree: ContentTree) -> _BuildContext:
        base_url = self.config.base_url
        ordered = reading_order(tree)
        page_links = (
            build_page_links(ordered, base_url)
            if self.config.navigation.page_links
            else {}
        )
        return _BuildContext(
            tree=tree,
            ordered=ordered,
            resolver=WikiLinkResolver(tree, self.config.content, base_url=base_url),
            navigation=NavigationRenderer(
                tree, base_url=base_url, environment=self.env
            ),
            page_links=page_links,
        )

    def _prepare_output_dir(self) -> None:
        if self.config.clean and self.output_dir.exists():
            logger.debug("removing %s", self.output_dir)
            shutil.rmtree(self.output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _copy_attachments(
        self, tree: ContentTree, diagnostics: DiagnosticsCollector
    ) -> list[Path]:
        """Copy attachments to their slugged output paths."""
        copied: list[Path] = []
        for node in tree.attachments:
            relative = output_file(node)
            if relative is None:
                continue
            destination = self.output_dir / relative
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(self.source_root / node.source_path, destination)
            except OSError as exc:
                diagnostics.record(
                    node.output_path, DiagnosticKind.PAGE_FAILED, f"copy failed: {exc}"
                )
                continue
            copied.append(destination)
        return copied

    def _process_page(self, page: ContentNode, context: _BuildContext) -> PageOutcome:
        """Render one page, confining any failure to that page."""
        collector = DiagnosticsCollector()
        try:
            written = self._render_page(page, context, collector)
        except Exception as exc:  # noqa: BLE001 - one bad page must not stop the build
            logger.debug("page %s failed", page.source_path, exc_info=True)
            collector.record(
                page.output_path,
                DiagnosticKind.PAGE_FAILED,
                f"{type(exc).__name__}: {exc}",
            )
            return PageOutcome(page=page, written=None, diagnostics=collector)
        return PageOutcome(page=page, written=written, diagnostics=collector)

    def _render_page(
        self,
        page: ContentNode,
        context: _BuildContext,
        diagnostics: DiagnosticsCollector,
    ) -> Path | None:
        """Render ``page`` into its shell and write it when writing is enabled."""
        source = (self.source_root / page.source_path).read_text(encoding="utf-8")
        _, body = split_front_matter(source)
        links = RelativeLinkExtension(
            context.tree,
            page,
            diagnostics,
            base_url=self.config.base_url,
            doc_extensions=self.config.content.doc_extensions,
        )
        renderer = MarkdownRenderer(self.config.pygments_style, extensions=[links])
        html = rewrite_references(
            renderer.render(body), page, context.resolver, diagnostics
        )
        outline = extract_outline(html, self.config.content.toc_min_headings)

        model = self._build_page_model(
            page,
            context,
            html,
            outline,
            declares_title=extract_h1(body) is not None,
        )
        rendered = self._render_shell(model)
        if not self.write:
            return None
        relative = typ.cast("Path", output_file(page))
        destination = self.output_dir / relative
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(rendered, encoding="utf-8")
        logger.debug("wrote %s", destination)
        return destination

    def _render_shell(self, model: PageModel) -> str:
        return self.template.render(
            page=model,
            site=self.config,
            theme=self.config.theme,
            pygments_css=Markup(self._stylesheet),
        )

    def _build_page_model(
        self,
        page: ContentNode,
        context: _BuildContext,
        html: str,
        outline: list[HeadingNode],
        *,
        declares_title: bool,
    ) -> PageModel:
        base_url = self.config.base_url
        title = display_title(page)
        breadcrumbs = (
            build_breadcrumbs(page, self.config.title, base_url)
            if self.config.navigation.breadcrumbs
            else []
        )
        return PageModel(
            title=title,
            html_title=self._format_page_title(page, title),
            url=typ.cast("str", node_url(page, base_url)),
            source_path=page.source_path,
            content_html=Markup(html),
            navigation_html=context.navigation.render(page.output_path),
            toc_html=render_outline(outline, self.env),
            breadcrumbs=breadcrumbs,
            page_links=context.page_links.get(page.source_path, PageLinks()),
            declares_title=declares_title,
        )

    def _format_page_title(self, page: ContentNode, title: str) -> str:
        """Compose the HTML title from the page title and the site title."""
        if page.is_index and page.parent is not None and page.parent.is_root:
            return self.config.title
        return f"{title} | {self.config.title}"

    def _write_home_fallback(
        self,
        context: _BuildContext,
        written: list[Path],
        diagnostics: DiagnosticsCollector,
    ) -> list[Path]:
        """Serve the first page as the site root when the root has no index.

        The first top-level page is preferred, then the first page in reading
        order. The page keeps its own URL; the copy only fills the root.
        """
        root = context.tree.root
        if root.has_index or not context.ordered:
            return []
        home = next(
            (page for page in context.ordered if page.parent is root),
            context.ordered[0],
        )
        source = self.output_dir / typ.cast("Path", output_file(home))
        destination = self.output_dir / HOME_FILENAME
        if source not in written or destination in written:
            return []
        try:
            shutil.copyfile(source, destination)
        except OSError as exc:
            diagnostics.record(
                home.output_path,
                DiagnosticKind.PAGE_FAILED,
                f"home page copy failed: {exc}",
            )
            return []
        logger.debug("using %s as the home page", home.source_path)
        return [destination]

    def _write_not_found(
        self,
        context: _BuildContext,
        written: list[Path],
        diagnostics: DiagnosticsCollector,
    ) -> list[Path]:
        """Write ``404.html`` unless an attachment already claims that name."""
        destination = self.output_dir / NOT_FOUND_FILENAME
        if destination in written:
            return []
        home = self.config.base_url.rstrip("/") + "/"
        content = Markup(
            "<p>The page you are looking for does not exist.</p>\n"
            '<p><a href="{home}">Return to the home page</a></p>'
        ).format(home=home)
        model = PageModel(
            title=NOT_FOUND_TITLE,
            html_title=f"{NOT_FOUND_TITLE} | {self.config.title}",
            url=f"{home}{NOT_FOUND_FILENAME}",
            source_path="",
            content_html=content,
            navigation_html=context.navigation.render(""),
            toc_html=Markup(""),
            breadcrumbs=[],
            page_links=PageLinks(),
            declares_title=False,
        )
        try:
            destination.write_text(self._render_shell(model), encoding="utf-8")
        except OSError as exc:
            diagnostics.record(
                NOT_FOUND_FILENAME,
                DiagnosticKind.PAGE_FAILED,
                f"write failed: {exc}",
            )
            return []
        return [destination]


__all__ = ["SiteGenerator"]
