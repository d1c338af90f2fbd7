r"""Turn raw source filenames into ordering keys, titles, and slugs.

Authors order documents with informal filename prefixes (``01-intro.md``,
``6 - Name.md``, ``0. Inbox``) and date collections with ``YYYY-MM-DD-``
prefixes. :func:`normalize_filename` reconciles those conventions into a
:class:`NormalizedName` without touching the filesystem, so the tree builder
and the wiki-link resolver derive identical slugs from identical text.

Example
-------
>>> from grove_pages.content.normalizer import normalize_filename
>>> name = normalize_filename("01-getting_started.md")
>>> (name.order_key.value, name.title, name.slug)
(1, 'getting started', 'getting-started')
>>> normalize_filename("2023 Goals.md").title
'2023 Goals'
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import enum
import re
import typing as typ

from grove_pages._constants import CANONICAL_INDEX_SLUG, DOC_EXTENSIONS, INDEX_NAMES

if typ.TYPE_CHECKING:
    import collections.abc as cabc

DATE_PREFIX_PATTERN = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})-(?P<rest>.*)$", re.DOTALL
)
ORDERING_PREFIX_PATTERN = re.compile(
    r"^(?P<digits>\d+)(?P<separator> - |[.\- ])(?P<rest>.*)$", re.DOTALL
)
EXTENSION_PATTERN = re.compile(r"(?P<suffix>\.[A-Za-z0-9]{1,10})$")
SEPARATOR_PATTERN = re.compile(r"[_\-]+")
DASH_RUN_PATTERN = re.compile(r"-{2,}")
YEAR_DIGITS = 4


class NodeKind(enum.Enum):
    """Closed set of content node variants."""

    PAGE = "page"
    FOLDER = "folder"
    ATTACHMENT = "attachment"


class OrderKind(enum.IntEnum):
    """How a sibling is ordered; lower values sort first."""

    DATE = 0
    NUMERIC = 1
    LEXICAL = 2


@dc.dataclass(frozen=True, slots=True)
class OrderKey:
    """Comparable sort key derived from a filename.

    Attributes
    ----------
    kind : OrderKind
        Whether the key came from a date prefix, an ordering prefix, or the
        name itself.
    value : int | datetime.date | str
        The parsed ordering number, the calendar date, or the raw name.
    """

    kind: OrderKind
    value: int | dt.date | str

    def sort_tuple(self, *, newest_first: bool = True) -> tuple[int, int | str]:
        """Return a tuple that orders keys of mixed kinds deterministically.

        Dated entries come first (newest first unless ``newest_first`` is
        false), then numbered entries ascending, then everything else in
        case-insensitive lexical order.
        """
        match self.kind:
            case OrderKind.DATE:
                ordinal = typ.cast("dt.date", self.value).toordinal()
                return (int(self.kind), -ordinal if newest_first else ordinal)
            case OrderKind.NUMERIC:
                return (int(self.kind), typ.cast("int", self.value))
            case OrderKind.LEXICAL:
                return (int(self.kind), typ.cast("str", self.value).casefold())


@dc.dataclass(frozen=True, slots=True)
class NormalizedName:
    """Result of normalizing one filename.

    Attributes
    ----------
    order_key : OrderKey
        Sort key for sibling ordering.
    title : str
        Display title derived from the filename.
    slug : str
        URL segment; empty when the name normalizes to nothing.
    kind : NodeKind
        Node variant inferred from the directory flag and the extension.
    suffix : str
        Attachment extension, kept verbatim; empty for pages and folders.
    is_index : bool
        ``True`` for pages whose name is one of the index names.
    """

    order_key: OrderKey
    title: str
    slug: str
    kind: NodeKind
    suffix: str = ""
    is_index: bool = False

    @property
    def needs_placeholder(self) -> bool:
        """Return ``True`` when nothing usable survived normalization."""
        return not self.slug


def is_document(name: str, doc_extensions: cabc.Iterable[str] = DOC_EXTENSIONS) -> bool:
    """Return ``True`` when ``name`` ends with a document extension."""
    lower = name.lower()
    return any(lower.endswith(ext.lower()) for ext in doc_extensions)


def strip_document_extension(
    name: str, doc_extensions: cabc.Iterable[str] = DOC_EXTENSIONS
) -> str:
    """Remove a trailing document extension from ``name`` if present."""
    lower = name.lower()
    for ext in doc_extensions:
        if lower.endswith(ext.lower()):
            return name[: -len(ext)]
    return name


def split_extension(name: str) -> tuple[str, str]:
    """Split ``name`` into stem and a plausible file extension."""
    match = EXTENSION_PATTERN.search(name)
    if not match or match.start() == 0:
        return name, ""
    return name[: match.start()], match.group("suffix")


def slugify(text: str) -> str:
    """Convert separator-normalized text into a lowercase dash-separated slug."""
    lowered = SEPARATOR_PATTERN.sub("-", text.strip().lower())
    dashed = "-".join(lowered.split())
    kept = "".join(ch for ch in dashed if ch.isalnum() or ch == "-")
    return DASH_RUN_PATTERN.sub("-", kept).strip("-")


def _titleize(text: str) -> str:
    """Turn underscores and dashes into spaces and collapse whitespace."""
    return " ".join(SEPARATOR_PATTERN.sub(" ", text).split())


def _parse_date_prefix(stem: str) -> tuple[dt.date, str] | None:
    """Return the calendar date and remaining text for ``YYYY-MM-DD-`` stems."""
    match = DATE_PREFIX_PATTERN.match(stem)
    if not match:
        return None
    try:
        date = dt.date(int(match["year"]), int(match["month"]), int(match["day"]))
    except ValueError:
        return None
    return date, match["rest"]


def _parse_ordering_prefix(stem: str) -> tuple[int, str] | None:
    """Return the ordering number and remaining text, ignoring literal years."""
    match = ORDERING_PREFIX_PATTERN.match(stem)
    if not match or len(match["digits"]) == YEAR_DIGITS:
        return None
    return int(match["digits"]), match["rest"].lstrip()


def normalize_filename(
    name: str,
    *,
    is_dir: bool = False,
    doc_extensions: cabc.Iterable[str] = DOC_EXTENSIONS,
    index_names: cabc.Iterable[str] = INDEX_NAMES,
) -> NormalizedName:
    """Normalize a single filename into ordering key, title, slug, and kind.

    Parameters
    ----------
    name : str
        File or folder name, extension included.
    is_dir : bool, optional
        Whether the entry is a folder.
    doc_extensions : Iterable[str], optional
        Extensions that mark a file as a page; matched case-insensitively.
    index_names : Iterable[str], optional
        Page slugs that designate a folder's index document.

    Returns
    -------
    NormalizedName
        The normalized result. Never raises: names that normalize to nothing
        come back with an empty slug and ``needs_placeholder`` set.
    """
    doc_extensions = tuple(doc_extensions)
    if is_dir:
        kind = NodeKind.FOLDER
    elif is_document(name, doc_extensions):
        kind = NodeKind.PAGE
    else:
        kind = NodeKind.ATTACHMENT

    if kind is NodeKind.ATTACHMENT:
        stem, suffix = split_extension(name)
        stem_slug = slugify(stem)
        return NormalizedName(
            order_key=OrderKey(OrderKind.LEXICAL, name),
            title=name,
            slug=f"{stem_slug}{suffix}" if stem_slug else "",
            kind=kind,
            suffix=suffix,
        )

    stem = strip_document_extension(name, doc_extensions) if kind is NodeKind.PAGE else name
    order_key = OrderKey(OrderKind.LEXICAL, name)
    remaining = stem
    if dated := _parse_date_prefix(stem):
        order_key = OrderKey(OrderKind.DATE, dated[0])
        remaining = dated[1]
    elif numbered := _parse_ordering_prefix(stem):
        order_key = OrderKey(OrderKind.NUMERIC, numbered[0])
        remaining = numbered[1]

    title = _titleize(remaining) or _titleize(stem) or stem
    slug = slugify(remaining)
    is_index = kind is NodeKind.PAGE and slug in {n.lower() for n in index_names}
    if is_index:
        slug = CANONICAL_INDEX_SLUG
    return NormalizedName(
        order_key=order_key, title=title, slug=slug, kind=kind, is_index=is_index
    )


__all__ = [
    "NodeKind",
    "NormalizedName",
    "OrderKey",
    "OrderKind",
    "is_document",
    "normalize_filename",
    "slugify",
    "split_extension",
    "strip_document_extension",
]
