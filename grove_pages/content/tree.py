"""Assemble the content tree that every later build stage reads from.

The builder runs once per build, sequentially, before any page work starts:
it creates one :class:`ContentNode` per scanned entry, orders siblings,
assigns placeholder slugs, rejects sibling slug collisions, and finally
stamps ``output_path`` top-down. After :meth:`ContentTreeBuilder.build`
returns, the tree is treated as read-only and is shared by page workers
without locking.

Example
-------
>>> from grove_pages.content.scanner import ScanEntry
>>> from grove_pages.content.tree import ContentTreeBuilder
>>> tree = ContentTreeBuilder().build(
...     [ScanEntry("guides", is_dir=True), ScanEntry("guides/01-intro.md")]
... )
>>> [node.output_path for node in tree.nodes]
['guides', 'guides/intro']
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ
from pathlib import PurePosixPath
from urllib.parse import quote

from grove_pages._constants import PLACEHOLDER_SLUG_TEMPLATE
from grove_pages.config.models import ContentSettings
from grove_pages.diagnostics import (
    Diagnostic,
    DiagnosticKind,
    DiagnosticsCollector,
    SlugCollisionError,
)

from .normalizer import (
    NodeKind,
    OrderKey,
    OrderKind,
    normalize_filename,
    split_extension,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .scanner import ScanEntry

logger = logging.getLogger(__name__)


@dc.dataclass(eq=False, slots=True)
class ContentNode:
    """One file or folder in the source tree.

    Attributes
    ----------
    raw_name : str
        Original file or folder name, extension included.
    kind : NodeKind
        Page, folder, or attachment.
    order_key : OrderKey
        Sort key produced by the filename normalizer.
    title : str
        Display title; a page's declared first heading wins over the filename.
    slug : str
        URL segment, unique among siblings.
    source_path : str
        POSIX path relative to the source root.
    declared_title : str or None
        First-level heading declared by the page, when any.
    is_index : bool
        ``True`` for the page that stands in for its folder.
    parent : ContentNode or None
        Back-reference assigned once during the build; ``None`` for the root.
    children : tuple[ContentNode, ...]
        Children in final sorted order.
    output_path : str
        Chain of slugs from the site root (``""`` for the root itself).
    index : ContentNode or None
        The folder's index page, when it has one.
    scan_position : int
        Position in depth-first document order; used for final tie-breaks.
    """

    raw_name: str
    kind: NodeKind
    order_key: OrderKey
    title: str
    slug: str
    source_path: str
    declared_title: str | None = None
    is_index: bool = False
    parent: ContentNode | None = dc.field(default=None, repr=False)
    children: tuple[ContentNode, ...] = dc.field(default=(), repr=False)
    output_path: str = ""
    index: ContentNode | None = dc.field(default=None, repr=False)
    scan_position: int = -1

    @property
    def has_index(self) -> bool:
        """Return ``True`` when this folder has a designated index page."""
        return self.index is not None

    @property
    def index_path(self) -> str | None:
        """Return the output path of the folder's index page, if any."""
        return self.index.output_path if self.index is not None else None

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def folder(self) -> ContentNode:
        """Return the folder a reference from this node is relative to."""
        if self.kind is NodeKind.FOLDER:
            return self
        return self.parent if self.parent is not None else self

    def ancestors(self) -> list[ContentNode]:
        """Return ancestors from the nearest parent up to the root."""
        chain: list[ContentNode] = []
        current = self.parent
        while current is not None:
            chain.append(current)
            current = current.parent
        return chain

    def iter_depth_first(self) -> cabc.Iterator[ContentNode]:
        """Yield descendants in stored child order, parents before children."""
        for child in self.children:
            yield child
            yield from child.iter_depth_first()

    def contains_pages(self) -> bool:
        """Return ``True`` when this node is or holds at least one page."""
        match self.kind:
            case NodeKind.PAGE:
                return True
            case NodeKind.ATTACHMENT:
                return False
            case NodeKind.FOLDER:
                return any(child.contains_pages() for child in self.children)

    def link_target(self) -> ContentNode | None:
        """Return the node a hyperlink to this node should point at."""
        match self.kind:
            case NodeKind.PAGE | NodeKind.ATTACHMENT:
                return self
            case NodeKind.FOLDER:
                return self.index


@dc.dataclass(slots=True)
class ContentTree:
    """Finalized content tree for a single build.

    Attributes
    ----------
    root : ContentNode
        Synthetic root folder; never rendered itself.
    nodes : tuple[ContentNode, ...]
        Every node except the root, in depth-first document order.
    warnings : tuple[Diagnostic, ...]
        Non-fatal problems found while assembling the tree.
    """

    root: ContentNode
    nodes: tuple[ContentNode, ...]
    warnings: tuple[Diagnostic, ...] = ()
    _by_path: dict[str, ContentNode] = dc.field(init=False, repr=False)
    _by_source: dict[str, ContentNode] = dc.field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._by_path = {node.output_path: node for node in self.nodes}
        self._by_source = {node.source_path: node for node in self.nodes}

    @property
    def pages(self) -> list[ContentNode]:
        """Return page nodes in document order."""
        return [node for node in self.nodes if node.kind is NodeKind.PAGE]

    @property
    def attachments(self) -> list[ContentNode]:
        """Return attachment nodes in document order."""
        return [node for node in self.nodes if node.kind is NodeKind.ATTACHMENT]

    def find(self, output_path: str) -> ContentNode | None:
        """Return the node stored at ``output_path``; ``""`` returns the root."""
        if not output_path.strip("/"):
            return self.root
        return self._by_path.get(output_path.strip("/"))

    def find_source(self, source_path: str) -> ContentNode | None:
        """Return the node scanned from ``source_path`` (relative to the source root)."""
        return self._by_source.get(source_path.strip("/"))


def display_title(node: ContentNode) -> str:
    """Return the title shown for ``node`` in links and page headers.

    Index pages that declare no heading borrow their folder's title.
    """
    parent = node.parent
    if node.is_index and not node.declared_title and parent and not parent.is_root:
        return parent.title
    return node.title


def join_output_path(parent_path: str, slug: str) -> str:
    """Append ``slug`` to ``parent_path`` using ``/`` separators."""
    return f"{parent_path}/{slug}" if parent_path else slug


def output_file(node: ContentNode) -> PurePosixPath | None:
    """Return the file a node is written to, relative to the output directory.

    Pages use clean URLs (``guides/intro/index.html``), index pages write
    their folder's ``index.html``, attachments keep their own path, and
    folders produce no file of their own.
    """
    match node.kind:
        case NodeKind.PAGE:
            if node.is_index:
                folder_path = node.parent.output_path if node.parent else ""
                return PurePosixPath(folder_path, "index.html")
            return PurePosixPath(node.output_path, "index.html")
        case NodeKind.ATTACHMENT:
            return PurePosixPath(node.output_path)
        case NodeKind.FOLDER:
            return None


def node_url(node: ContentNode, base_url: str = "/") -> str | None:
    """Return the public URL of ``node`` under ``base_url``.

    Folders without an index page have no URL and return ``None``.

    Examples
    --------
    >>> from grove_pages.content.scanner import ScanEntry
    >>> tree = ContentTreeBuilder().build([ScanEntry("guides/intro.md")])
    >>> node_url(tree.find("guides/intro"), "/docs")
    '/docs/guides/intro/'
    """
    prefix = base_url.rstrip("/") + "/"
    match node.kind:
        case NodeKind.PAGE:
            if node.is_index:
                path = node.parent.output_path if node.parent else ""
            else:
                path = node.output_path
            return f"{prefix}{quote(path)}/" if path else prefix
        case NodeKind.ATTACHMENT:
            return f"{prefix}{quote(node.output_path)}"
        case NodeKind.FOLDER:
            return node_url(node.index, base_url) if node.index is not None else None


def tree_distance(origin: ContentNode, target: ContentNode) -> int:
    """Return the number of parent/child hops between two nodes."""
    origin_chain = [origin, *origin.ancestors()]
    target_chain = [target, *target.ancestors()]
    target_ids = {id(node): hops for hops, node in enumerate(target_chain)}
    for hops, node in enumerate(origin_chain):
        if id(node) in target_ids:
            return hops + target_ids[id(node)]
    return len(origin_chain) + len(target_chain)


class ContentTreeBuilder:
    """Build a :class:`ContentTree` from an ordered directory listing."""

    def __init__(self, settings: ContentSettings | None = None) -> None:
        self.settings = settings or ContentSettings()

    def build(self, entries: cabc.Iterable[ScanEntry]) -> ContentTree:
        """Assemble, order, and stamp the tree for ``entries``.

        Parameters
        ----------
        entries : Iterable[ScanEntry]
            Scanned entries with POSIX paths relative to the source root.
            Parent folders missing from the listing are created implicitly.

        Returns
        -------
        ContentTree
            The finalized tree together with any placeholder-slug warnings.

        Raises
        ------
        SlugCollisionError
            If two siblings normalize to the same slug.
        """
        root = ContentNode(
            raw_name="",
            kind=NodeKind.FOLDER,
            order_key=OrderKey(OrderKind.LEXICAL, ""),
            title="",
            slug="",
            source_path="",
        )
        folders: dict[str, ContentNode] = {"": root}
        pending: dict[int, list[ContentNode]] = {id(root): []}

        for entry in entries:
            path = PurePosixPath(entry.relative_path)
            parent = self._ensure_folder(path.parent, folders, pending)
            if entry.is_dir:
                self._ensure_folder(path, folders, pending)
                continue
            node = self._make_node(path, is_dir=False, declared_title=entry.declared_title)
            node.parent = parent
            pending[id(parent)].append(node)

        warnings = DiagnosticsCollector()
        self._finalize(root, pending, warnings)
        nodes = tuple(root.iter_depth_first())
        for position, node in enumerate(nodes):
            node.scan_position = position
        logger.debug("built content tree with %d nodes", len(nodes))
        return ContentTree(root=root, nodes=nodes, warnings=tuple(warnings.snapshot()))

    def _ensure_folder(
        self,
        path: PurePosixPath,
        folders: dict[str, ContentNode],
        pending: dict[int, list[ContentNode]],
    ) -> ContentNode:
        """Return the folder node for ``path``, creating missing ancestors."""
        key = "" if str(path) == "." else path.as_posix()
        if key in folders:
            return folders[key]
        parent = self._ensure_folder(path.parent, folders, pending)
        folder = self._make_node(path, is_dir=True)
        folder.parent = parent
        pending[id(parent)].append(folder)
        pending[id(folder)] = []
        folders[key] = folder
        return folder

    def _make_node(
        self, path: PurePosixPath, *, is_dir: bool, declared_title: str | None = None
    ) -> ContentNode:
        normalized = normalize_filename(
            path.name,
            is_dir=is_dir,
            doc_extensions=self.settings.doc_extensions,
            index_names=self.settings.index_names,
        )
        declared = declared_title.strip() if declared_title else None
        title = normalized.title
        if declared and normalized.kind is NodeKind.PAGE:
            title = declared
        return ContentNode(
            raw_name=path.name,
            kind=normalized.kind,
            order_key=normalized.order_key,
            title=title,
            slug=normalized.slug,
            source_path=path.as_posix(),
            declared_title=declared or None,
            is_index=normalized.is_index,
        )

    def _sort_key(self, node: ContentNode) -> tuple[typ.Any, ...]:
        newest_first = self.settings.date_order == "descending"
        return (
            node.order_key.sort_tuple(newest_first=newest_first),
            node.title.casefold(),
            node.raw_name,
        )

    def _finalize(
        self,
        folder: ContentNode,
        pending: dict[int, list[ContentNode]],
        warnings: DiagnosticsCollector,
    ) -> None:
        """Order, slug-check, and stamp ``folder``'s children, then recurse."""
        children = sorted(pending.get(id(folder), []), key=self._sort_key)
        for position, child in enumerate(children, start=1):
            if not child.slug:
                stem = PLACEHOLDER_SLUG_TEMPLATE.format(position=position)
                _, suffix = split_extension(child.raw_name)
                child.slug = f"{stem}{suffix}" if child.kind is NodeKind.ATTACHMENT else stem
                warnings.record(
                    child.source_path,
                    DiagnosticKind.PLACEHOLDER_SLUG,
                    f"'{child.raw_name}' has no usable name; using '{child.slug}'",
                )
        self._check_collisions(folder, children)

        folder.children = tuple(children)
        for child in children:
            child.output_path = join_output_path(folder.output_path, child.slug)
            if child.kind is NodeKind.PAGE and child.is_index:
                folder.index = child
        for child in children:
            if child.kind is NodeKind.FOLDER:
                self._finalize(child, pending, warnings)

    @staticmethod
    def _check_collisions(folder: ContentNode, children: list[ContentNode]) -> None:
        seen: dict[str, list[ContentNode]] = {}
        for child in children:
            seen.setdefault(child.slug.casefold(), []).append(child)
        for slug, clashing in seen.items():
            if len(clashing) > 1:
                raise SlugCollisionError(
                    folder.output_path,
                    slug,
                    tuple(node.raw_name for node in clashing),
                )


__all__ = [
    "ContentNode",
    "ContentTree",
    "ContentTreeBuilder",
    "display_title",
    "join_output_path",
    "node_url",
    "output_file",
    "tree_distance",
]
