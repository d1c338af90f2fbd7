"""Behaviour tests for sibling slug collisions.

The scenarios live in ``features/slug_collision.feature``. Each one lays out
a small notes folder in a temporary directory, runs the site generator, and
checks that colliding siblings stop the build before any output exists while
same-named files in different folders build normally.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, scenarios, then, when

from grove_pages.config import SiteConfig
from grove_pages.diagnostics import SlugCollisionError
from grove_pages.generator import SiteGenerator

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "slug_collision.feature"
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


def _prepare(tmp_path: Path, scenario_state: dict[str, object], *files: str) -> None:
    source = tmp_path / "notes"
    for name in files:
        path = source / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"Notes for {name}.\n", encoding="utf-8")
    scenario_state["source"] = source
    scenario_state["output_dir"] = tmp_path / "public"


@given('a notes folder with "01-intro.md" and "1-intro.md" side by side')
def given_colliding_siblings(tmp_path: Path, scenario_state: dict[str, object]) -> None:
    _prepare(tmp_path, scenario_state, "01-intro.md", "1-intro.md", "other.md")


@given('a notes folder with "intro.md" in two different folders')
def given_same_names_apart(tmp_path: Path, scenario_state: dict[str, object]) -> None:
    _prepare(tmp_path, scenario_state, "a/intro.md", "b/intro.md")


@when("the site is built")
def when_site_built(scenario_state: dict[str, object]) -> None:
    """Run the generator, capturing either the result or the collision."""
    config = SiteConfig(output_dir=typ.cast("Path", scenario_state["output_dir"]))
    generator = SiteGenerator(config, typ.cast("Path", scenario_state["source"]))
    try:
        scenario_state["result"] = generator.run()
    except SlugCollisionError as exc:
        scenario_state["error"] = exc


@then("the build fails with a slug collision naming both files")
def then_collision_reported(scenario_state: dict[str, object]) -> None:
    error = scenario_state.get("error")
    assert isinstance(error, SlugCollisionError)
    assert sorted(error.raw_names) == ["01-intro.md", "1-intro.md"]
    assert error.slug == "intro"


@then("no output directory is created")
def then_no_output(scenario_state: dict[str, object]) -> None:
    assert not typ.cast("Path", scenario_state["output_dir"]).exists()


@then("both pages are written")
def then_both_written(scenario_state: dict[str, object]) -> None:
    output_dir = typ.cast("Path", scenario_state["output_dir"])
    assert "error" not in scenario_state
    assert (output_dir / "a" / "intro" / "index.html").exists()
    assert (output_dir / "b" / "intro" / "index.html").exists()
