"""Tests for walking a source directory and reading declared titles."""

from __future__ import annotations

from pathlib import Path

import pytest

from grove_pages.content import ScanEntry, extract_h1, scan_source, split_front_matter
from grove_pages.content.scanner import declared_title_for


@pytest.fixture
def source_root(tmp_path: Path) -> Path:
    root = tmp_path / "notes"
    (root / "guides").mkdir(parents=True)
    (root / ".obsidian").mkdir()
    (root / ".obsidian" / "workspace.md").write_text("# hidden", encoding="utf-8")
    (root / "grove.yaml").write_text("title: Notes\n", encoding="utf-8")
    (root / "index.md").write_text("# Home\n\nWelcome.", encoding="utf-8")
    (root / "guides" / "01-setup.md").write_text("Body only.", encoding="utf-8")
    (root / "guides" / "diagram.png").write_bytes(b"\x89PNG")
    return root


def test_scan_lists_folders_before_their_contents(source_root: Path) -> None:
    entries = scan_source(source_root)

    assert entries == [
        ScanEntry("guides", is_dir=True),
        ScanEntry("guides/01-setup.md"),
        ScanEntry("guides/diagram.png"),
        ScanEntry("index.md", declared_title="Home"),
    ]


def test_scan_skips_excluded_directories(source_root: Path) -> None:
    output = source_root / "public"
    output.mkdir()
    (output / "index.html").write_text("<html></html>", encoding="utf-8")

    entries = scan_source(source_root, exclude=[output])

    assert all(not entry.relative_path.startswith("public") for entry in entries)


def test_scan_rejects_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(NotADirectoryError):
        scan_source(tmp_path / "missing")


def test_extract_h1_skips_front_matter_and_code() -> None:
    text = (
        "---\ntitle: Ignored here\n---\n"
        "```bash\n# not a heading\n```\n"
        "Intro paragraph.\n\n"
        "# Real Title #\n"
    )

    assert extract_h1(text) == "Real Title"


def test_extract_h1_ignores_deeper_headings() -> None:
    assert extract_h1("## Section\n\nText") is None


def test_front_matter_title_wins_over_heading() -> None:
    text = "---\ntitle: From Front Matter\n---\n# From Heading\n"

    assert declared_title_for(text) == "From Front Matter"


def test_split_front_matter_returns_mapping_and_body() -> None:
    meta, body = split_front_matter("---\ntags: [a, b]\n---\n# Title\n")

    assert meta == {"tags": ["a", "b"]}
    assert body == "# Title\n"


def test_unreadable_front_matter_is_stripped_without_values() -> None:
    meta, body = split_front_matter("---\n: : [\n---\nText\n")

    assert meta == {}
    assert body == "Text\n"


def test_text_without_front_matter_is_unchanged() -> None:
    assert split_front_matter("# Title\n---\n") == ({}, "# Title\n---\n")
