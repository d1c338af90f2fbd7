r"""Walk a source directory and extract each page's declared title.

Example
-------
>>> from grove_pages.content.scanner import extract_h1
>>> extract_h1("---\ntitle: x\n---\n# Getting Started\n\nBody")
'Getting Started'
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from grove_pages._constants import CONFIG_FILENAME
from grove_pages.config.models import ContentSettings

from .normalizer import is_document

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = logging.getLogger(__name__)

FRONT_MATTER_PATTERN = re.compile(
    r"\A---[ \t]*\r?\n(?P<body>.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n)*",
    re.DOTALL | re.MULTILINE,
)
H1_PATTERN = re.compile(r"^#[ \t]+(?P<title>.+?)[ \t]*#*[ \t]*$")
FENCE_PATTERN = re.compile(r"^[ ]{0,3}(```|~~~)")


@dc.dataclass(frozen=True, slots=True)
class ScanEntry:
    """One entry of the recursive directory listing.

    Attributes
    ----------
    relative_path : str
        POSIX path relative to the source root.
    is_dir : bool
        Whether the entry is a folder.
    declared_title : str or None
        Title declared by a page (front matter ``title`` or first ``#``
        heading); always ``None`` for folders and attachments.
    """

    relative_path: str
    is_dir: bool = False
    declared_title: str | None = None


def split_front_matter(text: str) -> tuple[dict[str, typ.Any], str]:
    """Return parsed YAML front matter and the remaining Markdown body.

    Documents without a closed ``---`` block come back unchanged with an
    empty mapping. Front matter that is not valid YAML, or not a mapping, is
    still stripped from the body but contributes no values.
    """
    match = FRONT_MATTER_PATTERN.match(text)
    if not match:
        return {}, text
    body = text[match.end() :]
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        loaded = loader.load(match.group("body")) or {}
    except YAMLError as exc:
        logger.debug("ignoring unreadable front matter: %s", exc)
        return {}, body
    if not isinstance(loaded, dict):
        return {}, body
    return dict(loaded), body


def extract_h1(text: str) -> str | None:
    """Return the first level-one ATX heading outside fenced code, if any."""
    _, body = split_front_matter(text)
    in_fence = False
    for line in body.splitlines():
        if FENCE_PATTERN.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        if match := H1_PATTERN.match(line):
            return match.group("title").strip() or None
    return None


def declared_title_for(text: str) -> str | None:
    """Return the title a page declares, preferring front matter over ``#``."""
    front_matter, _ = split_front_matter(text)
    title = front_matter.get("title")
    if isinstance(title, str) and title.strip():
        return title.strip()
    return extract_h1(text)


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def scan_source(
    root: Path,
    settings: ContentSettings | None = None,
    *,
    exclude: cabc.Iterable[Path] = (),
) -> list[ScanEntry]:
    """List ``root`` recursively in deterministic depth-first order.

    Parameters
    ----------
    root : Path
        Source directory to scan.
    settings : ContentSettings, optional
        Supplies the document extensions used to decide which files are pages.
    exclude : Iterable[Path], optional
        Directories to skip, typically an output directory nested in the
        source tree.

    Returns
    -------
    list[ScanEntry]
        Entries sorted by name within each folder, folders listed before
        their contents. Hidden entries (leading ``.``) and the site
        configuration file at the root are skipped.

    Raises
    ------
    NotADirectoryError
        If ``root`` is not a directory.
    """
    if not root.is_dir():
        msg = f"Source directory '{root}' does not exist or is not a directory."
        raise NotADirectoryError(msg)
    settings = settings or ContentSettings()
    excluded = {path.resolve() for path in exclude}
    entries: list[ScanEntry] = []
    _scan_directory(root, root, settings, excluded, entries)
    logger.debug("scanned %d entries under %s", len(entries), root)
    return entries


def _scan_directory(
    root: Path,
    directory: Path,
    settings: ContentSettings,
    excluded: set[Path],
    entries: list[ScanEntry],
) -> None:
    for path in sorted(directory.iterdir(), key=lambda item: item.name):
        if _is_hidden(path.name):
            continue
        if directory == root and path.name == CONFIG_FILENAME:
            continue
        relative = path.relative_to(root).as_posix()
        if path.is_dir():
            if path.is_symlink():
                logger.debug("not following symlinked folder %s", relative)
                continue
            if path.resolve() in excluded:
                continue
            entries.append(ScanEntry(relative, is_dir=True))
            _scan_directory(root, path, settings, excluded, entries)
            continue
        declared = None
        if is_document(path.name, settings.doc_extensions):
            text = path.read_text(encoding="utf-8", errors="replace")
            declared = declared_title_for(text)
        entries.append(ScanEntry(relative, declared_title=declared))


__all__ = [
    "ScanEntry",
    "declared_title_for",
    "extract_h1",
    "scan_source",
    "split_front_matter",
]
