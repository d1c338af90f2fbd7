"""Build a browsable static site from a directory of Markdown notes.

This package exposes the CLI entry points behind the ``grove`` console
script, which turns a source folder into themed HTML pages with a sidebar,
outlines, and resolved ``[[...]]`` references.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from grove_pages import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
