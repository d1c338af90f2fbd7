r"""Resolve ``[[...]]`` references against the content tree.

Authors cross-reference documents with shorthand tokens that survive
Markdown rendering as literal text: ``[[target]]``, ``[[target|label]]``,
``[[target#anchor]]`` and the embed form ``![[target]]``. This module parses
those tokens, resolves them with :class:`WikiLinkResolver`, and rewrites the
rendered HTML with :func:`rewrite_references`.

Resolution tries, in order: an exact path relative to the referencing page
(then from the site root), a case-insensitive slug match anywhere in the
tree, and a case-insensitive title match. When a tier yields several
candidates the one closest to the referencing page wins, remaining ties go to
document order, and an ambiguity warning is recorded. References that match
nothing are recorded as broken and rendered as flagged links.

Example
-------
>>> from grove_pages.generator.wikilinks import ReferenceToken
>>> token = ReferenceToken.parse("[[guides/setup.md#install|Install]]")
>>> (token.raw_target, token.anchor, token.alias)
('guides/setup.md', 'install', 'Install')
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ
from html import escape, unescape
from urllib.parse import quote

from grove_pages._constants import (
    BROKEN_LINK_CLASS,
    IMAGE_EXTENSIONS,
    WIKILINK_CLASS,
)
from grove_pages.config.models import ContentSettings
from grove_pages.content.normalizer import (
    NodeKind,
    is_document,
    normalize_filename,
    split_extension,
    strip_document_extension,
)
from grove_pages.content.tree import join_output_path, node_url, tree_distance
from grove_pages.diagnostics import DiagnosticKind

if typ.TYPE_CHECKING:
    from grove_pages.content.tree import ContentNode, ContentTree
    from grove_pages.diagnostics import DiagnosticsCollector

TOKEN_PATTERN = re.compile(r"(?P<embed>!)?\[\[(?P<body>[^\[\]\n]*)\]\]")
ANCHOR_SEPARATOR = re.compile(r"(?<!&)#")
PROTECTED_PATTERN = re.compile(
    r"<(?P<tag>pre|code)\b[^>]*>.*?</(?P=tag)\s*>|<!--.*?-->|<[^>]*>",
    re.DOTALL | re.IGNORECASE,
)
RELATIVE_SEGMENTS = frozenset({".", ".."})


@dc.dataclass(frozen=True, slots=True)
class ReferenceToken:
    """A parsed ``[[...]]`` reference.

    Attributes
    ----------
    raw_target : str
        Target text with alias and anchor removed; may be empty.
    alias : str or None
        Display label after ``|``; never used for matching.
    anchor : str or None
        Fragment after ``#``, re-appended unchanged to the resolved URL.
    is_embed : bool
        ``True`` for the ``![[...]]`` form.
    source : str
        The token exactly as written.
    """

    raw_target: str
    alias: str | None
    anchor: str | None
    is_embed: bool
    source: str

    @classmethod
    def parse(cls, source: str) -> ReferenceToken:
        """Parse ``source`` (for example ``![[diagram.png|Overview]]``).

        Raises
        ------
        ValueError
            If ``source`` is not a single reference token.
        """
        match = TOKEN_PATTERN.fullmatch(source)
        if not match:
            msg = f"Not a reference token: {source!r}"
            raise ValueError(msg)
        return cls.from_match(match)

    @classmethod
    def from_match(cls, match: re.Match[str]) -> ReferenceToken:
        """Build a token from a :data:`TOKEN_PATTERN` match over rendered HTML.

        The body is split on ``|`` and ``#`` before character references are
        decoded, so an encoded bracket or newline stays part of its field.
        """
        target, _, alias = match.group("body").partition("|")
        target, *rest = ANCHOR_SEPARATOR.split(target, maxsplit=1)
        anchor = (unescape(rest[0]).strip() or None) if rest else None
        return cls(
            raw_target=unescape(target).strip(),
            alias=unescape(alias).strip() or None,
            anchor=anchor,
            is_embed=bool(match.group("embed")),
            source=unescape(match.group(0)),
        )

    @property
    def is_anchor_only(self) -> bool:
        """Return ``True`` for same-page references such as ``[[#usage]]``."""
        return not self.raw_target and self.anchor is not None

    @property
    def is_malformed(self) -> bool:
        """Return ``True`` when nothing remains to match or link to."""
        return not self.raw_target and self.anchor is None

    @property
    def default_label(self) -> str:
        """Return the text shown when no alias is given."""
        if self.is_anchor_only:
            return typ.cast("str", self.anchor)
        last = self.raw_target.rstrip("/").rsplit("/", 1)[-1]
        return strip_document_extension(last) or self.raw_target

    @property
    def label(self) -> str:
        return self.alias or self.default_label


@dc.dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of resolving one token for one page."""

    token: ReferenceToken
    href: str
    node: ContentNode | None = None

    @property
    def is_broken(self) -> bool:
        return self.node is None


@dc.dataclass(frozen=True, slots=True)
class _Target:
    """A reference target split into normalized path segments."""

    segments: tuple[str, ...]
    raw_name: str
    is_attachment: bool
    rooted: bool

    @property
    def folder_segments(self) -> list[str]:
        return [seg for seg in self.segments[:-1] if seg not in RELATIVE_SEGMENTS]


class WikiLinkResolver:
    """Resolve reference tokens against a finalized :class:`ContentTree`.

    The resolver only reads the tree, so one instance is shared by every
    page worker; per-page diagnostics go to the collector passed to
    :meth:`resolve`.
    """

    def __init__(
        self,
        tree: ContentTree,
        settings: ContentSettings | None = None,
        *,
        base_url: str = "/",
    ) -> None:
        self.tree = tree
        self.settings = settings or ContentSettings()
        self.base_url = base_url
        self._pages_by_slug: dict[str, list[ContentNode]] = {}
        self._pages_by_title: dict[str, list[ContentNode]] = {}
        self._attachments_by_slug: dict[str, list[ContentNode]] = {}
        self._attachments_by_title: dict[str, list[ContentNode]] = {}
        for node in tree.nodes:
            match node.kind:
                case NodeKind.PAGE:
                    self._index(node, self._pages_by_slug, self._pages_by_title)
                case NodeKind.FOLDER:
                    if node.has_index:
                        self._index(node, self._pages_by_slug, self._pages_by_title)
                case NodeKind.ATTACHMENT:
                    self._index(
                        node, self._attachments_by_slug, self._attachments_by_title
                    )

    @staticmethod
    def _index(
        node: ContentNode,
        by_slug: dict[str, list[ContentNode]],
        by_title: dict[str, list[ContentNode]],
    ) -> None:
        by_slug.setdefault(node.slug.casefold(), []).append(node)
        by_title.setdefault(node.title.strip().casefold(), []).append(node)

    def resolve(
        self,
        token: ReferenceToken,
        page: ContentNode,
        diagnostics: DiagnosticsCollector,
    ) -> Resolution:
        """Resolve ``token`` as referenced from ``page``.

        Parameters
        ----------
        token : ReferenceToken
            The parsed reference.
        page : ContentNode
            The page containing the reference.
        diagnostics : DiagnosticsCollector
            Receives broken, malformed, and ambiguous reference records.

        Returns
        -------
        Resolution
            The resolved node and URL, or a best-guess URL with ``node`` set
            to ``None`` for broken references. Malformed tokens resolve to an
            empty ``href``.
        """
        if token.is_malformed:
            diagnostics.record(
                page.output_path,
                DiagnosticKind.BROKEN_LINK,
                f"{token.source} has no target",
            )
            return Resolution(token=token, href="")
        anchor = f"#{token.anchor}" if token.anchor else ""
        if token.is_anchor_only:
            return Resolution(token=token, href=anchor, node=page)

        target = self._parse_target(token.raw_target)
        node = self._match(target, token, page, diagnostics)
        if node is None:
            diagnostics.record(
                page.output_path,
                DiagnosticKind.BROKEN_LINK,
                f"{token.source} does not match any "
                f"{'attachment' if target.is_attachment else 'page'}",
            )
            return Resolution(token=token, href=self._guess_href(target, page) + anchor)
        href = node_url(node, self.base_url) or self._guess_href(target, page)
        return Resolution(token=token, href=href + anchor, node=node)

    def _parse_target(self, raw_target: str) -> _Target:
        extensions = self.settings.doc_extensions
        rooted = raw_target.startswith("/")
        parts = [part.strip() for part in raw_target.split("/") if part.strip()]
        last = parts[-1] if parts else "."
        is_attachment = False
        if is_document(last, extensions):
            last = strip_document_extension(last, extensions)
        else:
            _, suffix = split_extension(last)
            is_attachment = any(ch.isalpha() for ch in suffix)

        segments = [
            part if part in RELATIVE_SEGMENTS else self._folder_slug(part)
            for part in parts[:-1]
        ]
        if last in RELATIVE_SEGMENTS:
            segments.append(last)
        elif is_attachment:
            segments.append(
                normalize_filename(last, doc_extensions=extensions).slug.casefold()
            )
        else:
            page_name = normalize_filename(
                f"{last}{extensions[0]}",
                doc_extensions=extensions,
                index_names=self.settings.index_names,
            )
            segments.append(page_name.slug)
        return _Target(
            segments=tuple(segments),
            raw_name=last,
            is_attachment=is_attachment,
            rooted=rooted,
        )

    @staticmethod
    def _folder_slug(segment: str) -> str:
        return normalize_filename(segment, is_dir=True).slug or segment.casefold()

    def _match(
        self,
        target: _Target,
        token: ReferenceToken,
        page: ContentNode,
        diagnostics: DiagnosticsCollector,
    ) -> ContentNode | None:
        """Apply the matching tiers in priority order."""
        starts = [self.tree.root] if target.rooted else [page.folder, self.tree.root]
        for start in starts:
            exact = self._walk(start, target)
            if exact is not None:
                return exact

        slug_pool = (
            self._attachments_by_slug if target.is_attachment else self._pages_by_slug
        )
        title_pool = (
            self._attachments_by_title if target.is_attachment else self._pages_by_title
        )
        tiers = (
            slug_pool.get(target.segments[-1].casefold(), []),
            title_pool.get(target.raw_name.strip().casefold(), []),
        )
        for candidates in tiers:
            accepted = self._accept_all(candidates, target)
            if accepted:
                return self._pick(accepted, token, page, diagnostics)
        return None

    def _walk(self, start: ContentNode, target: _Target) -> ContentNode | None:
        """Follow normalized segments from ``start`` through child slugs."""
        current = start
        for segment in target.segments:
            if segment == ".":
                continue
            if segment == "..":
                if current.parent is None:
                    return None
                current = current.parent
                continue
            found = next(
                (child for child in current.children if child.slug.casefold() == segment),
                None,
            )
            if found is None:
                return None
            current = found
        return self._accept(current, target)

    @staticmethod
    def _accept(node: ContentNode, target: _Target) -> ContentNode | None:
        """Return the linkable node for ``node`` if it suits the target kind."""
        match node.kind:
            case NodeKind.ATTACHMENT:
                return node if target.is_attachment else None
            case NodeKind.PAGE:
                return None if target.is_attachment else node
            case NodeKind.FOLDER:
                return None if target.is_attachment else node.index

    def _accept_all(
        self, candidates: list[ContentNode], target: _Target
    ) -> list[ContentNode]:
        """Filter by folder suffix and kind, then de-duplicate link targets."""
        folder_suffix = "/".join(target.folder_segments)
        accepted: dict[int, ContentNode] = {}
        for candidate in candidates:
            if folder_suffix:
                parent_path = candidate.parent.output_path if candidate.parent else ""
                if not f"/{parent_path}".casefold().endswith(f"/{folder_suffix}"):
                    continue
            linked = self._accept(candidate, target)
            if linked is not None:
                accepted.setdefault(id(linked), linked)
        return list(accepted.values())

    @staticmethod
    def _pick(
        candidates: list[ContentNode],
        token: ReferenceToken,
        page: ContentNode,
        diagnostics: DiagnosticsCollector,
    ) -> ContentNode:
        """Choose the closest candidate, recording ambiguity when there is a choice."""
        if len(candidates) == 1:
            return candidates[0]
        ranked = sorted(
            candidates,
            key=lambda node: (tree_distance(page, node), node.scan_position),
        )
        choices = ", ".join(node.output_path for node in ranked)
        diagnostics.record(
            page.output_path,
            DiagnosticKind.AMBIGUOUS_LINK,
            f"{token.source} matches {choices}; using {ranked[0].output_path}",
        )
        return ranked[0]

    def _guess_href(self, target: _Target, page: ContentNode) -> str:
        """Return the URL the reference would have if its target existed."""
        cleaned = [seg for seg in target.segments if seg not in RELATIVE_SEGMENTS]
        relative_to_page = not target.rooted and len(target.segments) == 1
        base = page.folder.output_path if relative_to_page else ""
        path = join_output_path(base, "/".join(cleaned))
        prefix = self.base_url.rstrip("/") + "/"
        if target.is_attachment:
            return f"{prefix}{quote(path)}"
        return f"{prefix}{quote(path)}/" if path else prefix


def render_reference(resolution: Resolution) -> str:
    """Return the HTML for a resolved (or broken) reference."""
    token = resolution.token
    label = escape(token.label)
    href = escape(resolution.href, quote=True)
    if resolution.is_broken:
        classes = f"{WIKILINK_CLASS} {BROKEN_LINK_CLASS}"
        return (
            f'<a class="{classes}" href="{href}" title="Unresolved reference">'
            f"{label}</a>"
        )
    node = typ.cast("ContentNode", resolution.node)
    if token.is_embed and node.kind is NodeKind.ATTACHMENT:
        _, suffix = split_extension(node.raw_name)
        if suffix.lower() in IMAGE_EXTENSIONS:
            return f'<img class="{WIKILINK_CLASS}-embed" src="{href}" alt="{label}">'
        return f'<a class="{WIKILINK_CLASS}" href="{href}" download>{label}</a>'
    return f'<a class="{WIKILINK_CLASS}" href="{href}">{label}</a>'


def rewrite_references(
    html: str,
    page: ContentNode,
    resolver: WikiLinkResolver,
    diagnostics: DiagnosticsCollector,
) -> str:
    """Replace reference tokens in rendered ``html`` with links or embeds.

    Only text between tags is rewritten: tokens inside ``<code>`` and
    ``<pre>`` elements or inside tag attributes (a link title, an image
    ``alt``) are left untouched. Malformed tokens stay literal but are still
    recorded as broken references.
    """

    def _replace(match: re.Match[str]) -> str:
        token = ReferenceToken.from_match(match)
        resolution = resolver.resolve(token, page, diagnostics)
        if token.is_malformed:
            return match.group(0)
        return render_reference(resolution)

    parts = [
        segment if protected else TOKEN_PATTERN.sub(_replace, segment)
        for segment, protected in _split_protected(html)
    ]
    return "".join(parts)


def _split_protected(html: str) -> list[tuple[str, bool]]:
    """Split ``html`` into (segment, is_markup) pairs; only text is rewritten."""
    parts: list[tuple[str, bool]] = []
    last = 0
    for match in PROTECTED_PATTERN.finditer(html):
        parts.append((html[last : match.start()], False))
        parts.append((match.group(0), True))
        last = match.end()
    parts.append((html[last:], False))
    return parts


__all__ = [
    "ReferenceToken",
    "Resolution",
    "WikiLinkResolver",
    "render_reference",
    "rewrite_references",
]
