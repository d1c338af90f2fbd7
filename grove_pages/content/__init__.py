"""Build the content tree: scan sources, normalize names, order siblings."""

from .normalizer import (
    NodeKind,
    NormalizedName,
    OrderKey,
    OrderKind,
    normalize_filename,
    slugify,
)
from .scanner import ScanEntry, extract_h1, scan_source, split_front_matter
from .tree import (
    ContentNode,
    ContentTree,
    ContentTreeBuilder,
    display_title,
    node_url,
    output_file,
    tree_distance,
)

__all__ = [
    "ContentNode",
    "ContentTree",
    "ContentTreeBuilder",
    "NodeKind",
    "NormalizedName",
    "OrderKey",
    "OrderKind",
    "ScanEntry",
    "display_title",
    "extract_h1",
    "node_url",
    "normalize_filename",
    "output_file",
    "scan_source",
    "slugify",
    "split_front_matter",
    "tree_distance",
]
