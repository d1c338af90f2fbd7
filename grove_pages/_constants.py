"""Common literal values used across grove_pages.

These constants keep filenames, extensions, and markup class names
centralized so the tree builder, link resolver, templates, and tests can
import the same values without drifting. Intended for internal use within
the grove_pages package.

Examples
--------
>>> from grove_pages import _constants
>>> ".md" in _constants.DOC_EXTENSIONS
True
>>> _constants.PLACEHOLDER_SLUG_TEMPLATE.format(position=3)
'untitled-3'
"""

CONFIG_FILENAME = "grove.yaml"
DOC_EXTENSIONS = (".md", ".markdown")
INDEX_NAMES = ("index", "readme")
CANONICAL_INDEX_SLUG = "index"
PLACEHOLDER_SLUG_TEMPLATE = "untitled-{position}"
DEFAULT_TOC_MIN_HEADINGS = 3

IMAGE_EXTENSIONS = frozenset(
    {".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".bmp", ".ico", ".avif"}
)

WIKILINK_CLASS = "wikilink"
BROKEN_LINK_CLASS = "is-broken"

HOME_FILENAME = "index.html"
NOT_FOUND_FILENAME = "404.html"
NOT_FOUND_TITLE = "Page Not Found"
