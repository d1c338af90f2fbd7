"""Shared Jinja environment for page shells and navigation partials."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"


def build_environment(templates_dir: Path | None = None) -> Environment:
    """Return a Jinja environment rooted at ``templates_dir``.

    Autoescaping is enabled for ``.jinja`` templates, so fragments produced
    elsewhere must be passed in as :class:`markupsafe.Markup`.
    """
    return Environment(
        loader=FileSystemLoader(str(templates_dir or DEFAULT_TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml", "jinja"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


__all__ = ["DEFAULT_TEMPLATES_DIR", "build_environment"]
