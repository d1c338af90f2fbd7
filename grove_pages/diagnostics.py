"""Build diagnostics shared by the tree builder, link resolver, and CLI.

Soft problems (broken or ambiguous references, placeholder slugs, pages that
failed to render) are collected as :class:`Diagnostic` records rather than
raised, so a build can report everything at the end. The only fatal
condition during tree assembly, a sibling slug collision, is raised as
:class:`SlugCollisionError` and aborts the build before any page work.

Example
-------
>>> from grove_pages.diagnostics import DiagnosticKind, DiagnosticsCollector
>>> collector = DiagnosticsCollector()
>>> collector.record("guides/intro", DiagnosticKind.BROKEN_LINK, "[[missing]]")
>>> [diag.kind.value for diag in collector.sorted()]
['broken-link']
"""

from __future__ import annotations

import dataclasses as dc
import enum
import logging
import threading
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = logging.getLogger(__name__)


class BuildError(RuntimeError):
    """Raised when a build cannot proceed at all."""


class SlugCollisionError(BuildError):
    """Raised when two siblings normalize to the same slug.

    Attributes
    ----------
    folder_path : str
        Output path of the folder holding the colliding entries (``""`` for
        the site root).
    slug : str
        The slug both entries normalized to.
    raw_names : tuple[str, ...]
        Original filenames of the colliding entries.
    """

    def __init__(self, folder_path: str, slug: str, raw_names: tuple[str, ...]) -> None:
        self.folder_path = folder_path
        self.slug = slug
        self.raw_names = raw_names
        where = folder_path or "<root>"
        names = ", ".join(repr(name) for name in raw_names)
        super().__init__(f"Slug collision in {where}: {names} all map to '{slug}'.")

    def to_diagnostic(self) -> Diagnostic:
        """Return the collision as a report entry for the colliding folder."""
        return Diagnostic(
            page_path=self.folder_path,
            kind=DiagnosticKind.SLUG_COLLISION,
            detail=str(self),
        )


class DiagnosticKind(enum.Enum):
    """Categories of problems reported at the end of a build."""

    BROKEN_LINK = "broken-link"
    AMBIGUOUS_LINK = "ambiguous-link"
    SLUG_COLLISION = "slug-collision"
    PLACEHOLDER_SLUG = "placeholder-slug"
    PAGE_FAILED = "page-failed"


@dc.dataclass(frozen=True, slots=True)
class Diagnostic:
    """One reported problem, attributed to the page (or folder) it concerns."""

    page_path: str
    kind: DiagnosticKind
    detail: str

    def sort_key(self) -> tuple[str, str, str]:
        """Return the key used for the deterministic end-of-build report."""
        return (self.page_path, self.kind.value, self.detail)


class DiagnosticsCollector:
    """Append-only, thread-safe collection of build diagnostics."""

    def __init__(self) -> None:
        self._entries: list[Diagnostic] = []
        self._lock = threading.Lock()

    def record(self, page_path: str, kind: DiagnosticKind, detail: str) -> None:
        """Append a diagnostic and log it at warning level."""
        diagnostic = Diagnostic(page_path=page_path, kind=kind, detail=detail)
        with self._lock:
            self._entries.append(diagnostic)
        logger.warning("%s: %s: %s", page_path or "<root>", kind.value, detail)

    def extend(self, diagnostics: cabc.Iterable[Diagnostic]) -> None:
        """Append already-built diagnostics without logging them again."""
        items = list(diagnostics)
        with self._lock:
            self._entries.extend(items)

    def merge(self, other: DiagnosticsCollector) -> None:
        """Fold the entries of another collector into this one."""
        self.extend(other.snapshot())

    def snapshot(self) -> list[Diagnostic]:
        """Return the entries in insertion order."""
        with self._lock:
            return list(self._entries)

    def sorted(self) -> list[Diagnostic]:
        """Return the entries sorted by page path, kind, then detail."""
        return sorted(self.snapshot(), key=Diagnostic.sort_key)

    def count(self, *kinds: DiagnosticKind) -> int:
        """Return how many entries match ``kinds`` (all entries when empty)."""
        entries = self.snapshot()
        if not kinds:
            return len(entries)
        return sum(1 for entry in entries if entry.kind in kinds)

    def grouped(self) -> dict[str, list[Diagnostic]]:
        """Return sorted diagnostics grouped by page path."""
        groups: dict[str, list[Diagnostic]] = {}
        for entry in self.sorted():
            groups.setdefault(entry.page_path, []).append(entry)
        return groups

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __bool__(self) -> bool:
        return len(self) > 0


__all__ = [
    "BuildError",
    "Diagnostic",
    "DiagnosticKind",
    "DiagnosticsCollector",
    "SlugCollisionError",
]
