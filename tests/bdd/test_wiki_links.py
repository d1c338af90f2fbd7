"""Behaviour tests for resolving ``[[...]]`` references during a build."""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from pytest_bdd import given, scenarios, then, when

from grove_pages.config import SiteConfig
from grove_pages.diagnostics import DiagnosticKind
from grove_pages.generator import BuildResult, SiteGenerator

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "wiki_links.feature"
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    return {}


def _notes_with_reference(
    tmp_path: Path, scenario_state: dict[str, object], reference: str
) -> None:
    guides = tmp_path / "notes" / "01-guides"
    guides.mkdir(parents=True)
    (guides / "01-setup.md").write_text(
        "# Setup\n\n## Install\n\nSteps.\n", encoding="utf-8"
    )
    (guides / "02-usage.md").write_text(
        f"# Usage\n\nInstall first: {reference}\n", encoding="utf-8"
    )
    scenario_state["source"] = tmp_path / "notes"
    scenario_state["output_dir"] = tmp_path / "public"


@given('a notes folder where the usage page references "[[setup.md#install]]"')
def given_anchor_reference(tmp_path: Path, scenario_state: dict[str, object]) -> None:
    _notes_with_reference(tmp_path, scenario_state, "[[setup.md#install]]")


@given('a notes folder where the usage page references "[[missing#x]]"')
def given_missing_reference(tmp_path: Path, scenario_state: dict[str, object]) -> None:
    _notes_with_reference(tmp_path, scenario_state, "[[missing#x]]")


@when("the site is built")
def when_site_built(scenario_state: dict[str, object]) -> None:
    config = SiteConfig(output_dir=typ.cast("Path", scenario_state["output_dir"]))
    source = typ.cast("Path", scenario_state["source"])
    scenario_state["result"] = SiteGenerator(config, source).run()


def _usage_page(scenario_state: dict[str, object]) -> BeautifulSoup:
    output_dir = typ.cast("Path", scenario_state["output_dir"])
    html = (output_dir / "guides" / "usage" / "index.html").read_text(encoding="utf-8")
    return BeautifulSoup(html, "html.parser")


@then('the usage page links to "/guides/setup/#install"')
def then_links_to_section(scenario_state: dict[str, object]) -> None:
    link = _usage_page(scenario_state).select_one("article a.wikilink")
    assert link is not None
    assert link["href"] == "/guides/setup/#install"
    assert "is-broken" not in link.get("class", [])


@then("the build reports no diagnostics")
def then_no_diagnostics(scenario_state: dict[str, object]) -> None:
    result = typ.cast("BuildResult", scenario_state["result"])
    assert result.diagnostics == []


@then('the usage page has a flagged link to "/guides/missing/#x"')
def then_flagged_link(scenario_state: dict[str, object]) -> None:
    link = _usage_page(scenario_state).select_one("a.wikilink.is-broken")
    assert link is not None
    assert link["href"] == "/guides/missing/#x"


@then('the build reports one broken reference for "guides/usage"')
def then_one_broken(scenario_state: dict[str, object]) -> None:
    result = typ.cast("BuildResult", scenario_state["result"])
    assert [(d.page_path, d.kind) for d in result.diagnostics] == [
        ("guides/usage", DiagnosticKind.BROKEN_LINK)
    ]


@then("the build exits with status 1")
def then_exit_status(scenario_state: dict[str, object]) -> None:
    result = typ.cast("BuildResult", scenario_state["result"])
    assert result.exit_code(strict=True) == 1
