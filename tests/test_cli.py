"""Tests for the ``grove`` command-line interface."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

import msgspec.json as msgspec_json
import pytest

from grove_pages import cli

REPO_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def source_root(tmp_path: Path) -> Path:
    root = tmp_path / "notes"
    (root / "guides").mkdir(parents=True)
    (root / "index.md").write_text("# Home\n\nSee [[intro]].\n", encoding="utf-8")
    (root / "guides" / "01-intro.md").write_text(
        "# Intro\n\nBack to [[index]] and [[nowhere]].\n", encoding="utf-8"
    )
    return root


def test_build_fails_on_broken_references_by_default(
    source_root: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.build(source_root, output_dir=tmp_path / "out")

    assert excinfo.value.code == 1
    out = capsys.readouterr().out
    assert "built 2 pages, 3 files written" in out
    assert "1 broken-link" in out
    assert "guides/intro\n  broken-link: [[nowhere]] does not match any page" in out


def test_allow_broken_links_exits_cleanly(
    source_root: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    output_dir = tmp_path / "out"

    cli.build(source_root, output_dir=output_dir, allow_broken_links=True)

    assert (output_dir / "guides" / "intro" / "index.html").exists()
    assert "built 2 pages" in capsys.readouterr().out


def test_verbose_lists_written_files(
    source_root: Path,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(tmp_path)

    cli.build(
        source_root,
        output_dir=tmp_path / "out",
        allow_broken_links=True,
        verbose=True,
    )

    lines = capsys.readouterr().out.splitlines()
    assert "wrote out/index.html" in lines
    assert "wrote out/guides/intro/index.html" in lines


def test_quiet_prints_nothing_on_success(
    source_root: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.build(
        source_root, output_dir=tmp_path / "out", allow_broken_links=True, quiet=True
    )

    assert capsys.readouterr().out == ""


def test_report_is_written_as_json(source_root: Path, tmp_path: Path) -> None:
    report = tmp_path / "reports" / "build.json"

    with pytest.raises(SystemExit):
        cli.build(source_root, output_dir=tmp_path / "out", report=report)

    payload = msgspec_json.decode(report.read_bytes())
    assert payload["pages"] == 2
    assert payload["exit_code"] == 1
    assert [diag["kind"] for diag in payload["diagnostics"]] == ["broken-link"]


def test_config_file_in_source_is_discovered(
    source_root: Path, tmp_path: Path
) -> None:
    (source_root / "grove.yaml").write_text(
        "title: Team Notes\nbase_url: /kb\nstrict: false\n", encoding="utf-8"
    )
    output_dir = tmp_path / "out"

    cli.build(source_root, output_dir=output_dir)

    html = (output_dir / "guides" / "intro" / "index.html").read_text(encoding="utf-8")
    assert "<title>Intro | Team Notes</title>" in html
    assert 'href="/kb/"' in html


def test_cli_flags_override_config_values(source_root: Path, tmp_path: Path) -> None:
    (source_root / "grove.yaml").write_text("base_url: /kb\n", encoding="utf-8")
    output_dir = tmp_path / "out"

    cli.build(
        source_root,
        output_dir=output_dir,
        base_url="/docs",
        allow_broken_links=True,
    )

    html = (output_dir / "index.html").read_text(encoding="utf-8")
    assert 'href="/docs/guides/intro/"' in html


def test_check_writes_nothing(
    source_root: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (source_root / "grove.yaml").write_text(
        f"output_dir: {tmp_path / 'out'}\n", encoding="utf-8"
    )

    cli.check(source_root, allow_broken_links=True)

    assert not (tmp_path / "out").exists()
    assert "checked 2 pages" in capsys.readouterr().out


def test_check_fails_on_broken_references(source_root: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.check(source_root, quiet=True)

    assert excinfo.value.code == 1


def test_slug_collision_exits_with_error(
    source_root: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (source_root / "guides" / "1-intro.md").write_text("dup", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.build(source_root, output_dir=tmp_path / "out")

    assert excinfo.value.code == 1
    assert "Slug collision in guides" in capsys.readouterr().err
    assert not (tmp_path / "out").exists()


def test_missing_source_exits_with_usage_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.build(tmp_path / "absent")

    assert excinfo.value.code == 2
    assert capsys.readouterr().err.startswith("error: source directory")


@pytest.mark.parametrize(
    ("config_text", "message"),
    [("workers: none\n", "'workers' must be an integer"), ("- a\n", "mapping")],
)
def test_invalid_config_exits_with_usage_error(
    source_root: Path,
    capsys: pytest.CaptureFixture[str],
    config_text: str,
    message: str,
) -> None:
    (source_root / "grove.yaml").write_text(config_text, encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.check(source_root)

    assert excinfo.value.code == 2
    assert message in capsys.readouterr().err


def test_unparseable_config_exits_with_usage_error(
    source_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (source_root / "grove.yaml").write_text("title: [unclosed\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.check(source_root)

    assert excinfo.value.code == 2
    assert "configuration is not valid YAML" in capsys.readouterr().err


def test_explicit_missing_config_exits_with_usage_error(
    source_root: Path, tmp_path: Path
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.check(source_root, config=tmp_path / "absent.yaml")

    assert excinfo.value.code == 2


def test_workers_must_be_positive(source_root: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.build(source_root, workers=0)
    assert excinfo.value.code == 2


def test_console_entrypoint_runs_build(source_root: Path, tmp_path: Path) -> None:
    """Run the CLI in a subprocess and decode the JSON report it writes."""
    report = tmp_path / "report.json"
    env = {**os.environ, "PYTHONPATH": str(REPO_ROOT)}

    completed = subprocess.run(  # noqa: S603
        [
            sys.executable,
            "-m",
            "grove_pages.cli",
            "build",
            str(source_root),
            "--output-dir",
            str(tmp_path / "site"),
            "--allow-broken-links",
            "--report",
            str(report),
        ],
        capture_output=True,
        text=True,
        env=env,
        check=False,
    )

    assert completed.returncode == 0, completed.stderr
    payload = msgspec_json.decode(report.read_bytes())
    assert payload["exit_code"] == 0
    assert str(tmp_path / "site" / "index.html") in payload["written"]


def test_collision_is_written_to_the_report(source_root: Path, tmp_path: Path) -> None:
    (source_root / "guides" / "1-intro.md").write_text("dup", encoding="utf-8")
    report = tmp_path / "report.json"

    with pytest.raises(SystemExit):
        cli.build(source_root, output_dir=tmp_path / "out", report=report, quiet=True)

    payload = msgspec_json.decode(report.read_bytes())
    assert payload["pages"] == 0
    assert payload["exit_code"] == 1
    (diag,) = payload["diagnostics"]
    assert diag["kind"] == "slug-collision"
    assert diag["page_path"] == "guides"
