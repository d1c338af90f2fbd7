"""Whole-site navigation, breadcrumbs, and previous/next links.

:class:`NavigationRenderer` walks the finalized tree in its stored child
order and renders the sidebar for one page. Index pages are represented by
their folder, attachments are never listed, and folders that hold no pages
are omitted. The breadcrumb and previous/next helpers build plain data for
the page template.

Example
-------
>>> from grove_pages.content import ContentTreeBuilder, ScanEntry
>>> from grove_pages.generator.navigation import NavigationRenderer
>>> tree = ContentTreeBuilder().build(
...     [ScanEntry("01-intro.md"), ScanEntry("02-usage.md")]
... )
>>> [item.label for item in NavigationRenderer(tree).build_items("usage")]
['intro', 'usage']
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from markupsafe import Markup

from grove_pages.content.normalizer import NodeKind
from grove_pages.content.tree import display_title, node_url

from .templating import build_environment

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from jinja2 import Environment

    from grove_pages.content.tree import ContentNode, ContentTree


@dc.dataclass(slots=True)
class NavItem:
    """One entry in the navigation tree.

    Attributes
    ----------
    label : str
        Display text.
    href : str or None
        Link target; ``None`` for folders without an index page.
    active : bool
        ``True`` when this entry stands for the current page.
    is_folder : bool
        Whether the entry is a folder.
    expanded : bool
        ``True`` for folders that contain the current page.
    children : list[NavItem]
        Nested entries.
    """

    label: str
    href: str | None
    active: bool = False
    is_folder: bool = False
    expanded: bool = False
    children: list[NavItem] = dc.field(default_factory=list)


@dc.dataclass(frozen=True, slots=True)
class Breadcrumb:
    """One step of the trail from the site root to the current page."""

    label: str
    href: str | None
    current: bool = False


@dc.dataclass(frozen=True, slots=True)
class PageLink:
    """A previous or next page reference."""

    title: str
    href: str
    section: str | None = None


@dc.dataclass(frozen=True, slots=True)
class PageLinks:
    """Previous and next pages in reading order."""

    previous: PageLink | None = None
    next: PageLink | None = None

    def __bool__(self) -> bool:
        return self.previous is not None or self.next is not None


class NavigationRenderer:
    """Render the sidebar navigation for any page of a finalized tree."""

    def __init__(
        self,
        tree: ContentTree,
        *,
        base_url: str = "/",
        environment: Environment | None = None,
    ) -> None:
        self.tree = tree
        self.base_url = base_url
        self._environment = environment

    def build_items(self, current_path: str) -> list[NavItem]:
        """Return navigation entries with ``current_path`` marked active."""
        return self._items(self.tree.root, current_path)

    def render(self, current_path: str) -> Markup:
        """Render the navigation fragment; an empty tree renders ``""``."""
        items = self.build_items(current_path)
        if not items:
            return Markup("")
        env = self._environment or build_environment()
        return Markup(env.get_template("nav.jinja").render(items=items))

    def _items(self, folder: ContentNode, current_path: str) -> list[NavItem]:
        items: list[NavItem] = []
        for child in folder.children:
            match child.kind:
                case NodeKind.ATTACHMENT:
                    continue
                case NodeKind.PAGE:
                    if child.is_index:
                        continue
                    items.append(
                        NavItem(
                            label=child.title,
                            href=node_url(child, self.base_url),
                            active=child.output_path == current_path,
                        )
                    )
                case NodeKind.FOLDER:
                    if not child.contains_pages():
                        continue
                    nested = self._items(child, current_path)
                    active = child.has_index and child.index_path == current_path
                    items.append(
                        NavItem(
                            label=child.title,
                            href=node_url(child, self.base_url),
                            active=active,
                            is_folder=True,
                            expanded=active
                            or any(item.active or item.expanded for item in nested),
                            children=nested,
                        )
                    )
        return items


def reading_order(tree: ContentTree) -> list[ContentNode]:
    """Return pages depth-first, each folder's index page before its siblings."""
    return list(_reading_order(tree.root))


def _reading_order(folder: ContentNode) -> cabc.Iterator[ContentNode]:
    if folder.index is not None:
        yield folder.index
    for child in folder.children:
        match child.kind:
            case NodeKind.PAGE:
                if not child.is_index:
                    yield child
            case NodeKind.FOLDER:
                yield from _reading_order(child)
            case NodeKind.ATTACHMENT:
                continue


def build_breadcrumbs(
    page: ContentNode, site_title: str, base_url: str = "/"
) -> list[Breadcrumb]:
    """Return the trail from the site root to ``page``.

    The site root comes first and the current page last. Folders without an
    index page appear as plain labels. The root index page yields a single
    crumb, which the template does not render.
    """
    home = base_url.rstrip("/") + "/"
    represented = page.parent if page.is_index and page.parent is not None else page
    if represented.is_root:
        return [Breadcrumb(label=site_title, href=None, current=True)]
    crumbs = [Breadcrumb(label=site_title, href=home)]
    for ancestor in reversed(represented.ancestors()):
        if ancestor.is_root:
            continue
        crumbs.append(Breadcrumb(label=ancestor.title, href=node_url(ancestor, base_url)))
    crumbs.append(Breadcrumb(label=represented.title, href=None, current=True))
    return crumbs


def build_page_links(
    ordered: cabc.Sequence[ContentNode], base_url: str = "/"
) -> dict[str, PageLinks]:
    """Return previous/next links for every page, keyed by source path.

    ``ordered`` is the site's :func:`reading_order`, computed once per build.
    """

    def _link(node: ContentNode) -> PageLink:
        folder = node.parent.parent if node.is_index and node.parent else node.parent
        section = folder.title if folder is not None and not folder.is_root else None
        return PageLink(
            title=display_title(node),
            href=typ.cast("str", node_url(node, base_url)),
            section=section,
        )

    links = [_link(node) for node in ordered]
    return {
        node.source_path: PageLinks(
            previous=links[idx - 1] if idx > 0 else None,
            next=links[idx + 1] if idx + 1 < len(links) else None,
        )
        for idx, node in enumerate(ordered)
    }


__all__ = [
    "Breadcrumb",
    "NavItem",
    "NavigationRenderer",
    "PageLink",
    "PageLinks",
    "build_breadcrumbs",
    "build_page_links",
    "reading_order",
]
