"""Cyclopts CLI entrypoint for building and checking grove sites.

The ``grove`` console script defined here turns a directory of Markdown notes
into a static site (``grove build``) or validates the tree and every
``[[...]]`` reference without writing anything (``grove check``). Options
fall back to ``GROVE_``-prefixed environment variables, then to the source
directory's ``grove.yaml``, then to built-in defaults.

Examples
--------
Build a notes folder into ``public/``:

>>> from grove_pages.cli import main
>>> main()  # doctest: +SKIP

Check references only, tolerating broken links:

>>> from grove_pages.cli import app
>>> app(["check", "notes", "--allow-broken-links"])  # doctest: +SKIP
"""

from __future__ import annotations

import dataclasses as dc
import json
import logging
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter
from ruamel.yaml.error import YAMLError

from .config import (
    SiteConfig,
    SiteConfigError,
    discover_config,
    load_site_config,
    normalize_base_url,
)
from .diagnostics import DiagnosticKind, SlugCollisionError
from .generator import BuildResult, SiteGenerator, build_report

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

app = App(name="grove", config=cyclopts.config.Env("GROVE_", command=False))  # type: ignore[unknown-argument]


def configure_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Set the level of the ``grove_pages`` loggers for a CLI run.

    Diagnostics are printed in the end-of-build report, so the default level
    only lets errors through; ``--verbose`` shows per-page debug output and
    each diagnostic as it is recorded.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.CRITICAL
    else:
        level = logging.ERROR
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger("grove_pages").setLevel(level)


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _fail(message: str, code: int) -> typ.NoReturn:
    print(f"error: {message}", file=sys.stderr)
    raise SystemExit(code)


def _resolve_config(
    source: Path,
    config: Path | None,
    *,
    output_dir: Path | None = None,
    base_url: str | None = None,
    workers: int | None = None,
    allow_broken_links: bool = False,
    clean: bool = False,
) -> SiteConfig:
    """Load the site configuration and layer command-line overrides on top."""
    site = load_site_config(config if config is not None else discover_config(source))
    overrides: dict[str, typ.Any] = {}
    if output_dir is not None:
        overrides["output_dir"] = output_dir
    if base_url is not None:
        overrides["base_url"] = normalize_base_url(base_url)
    if workers is not None:
        if workers < 1:
            msg = "'--workers' must be at least 1."
            raise SiteConfigError(msg)
        overrides["workers"] = workers
    if allow_broken_links:
        overrides["strict"] = False
    if clean:
        overrides["clean"] = True
    return dc.replace(site, **overrides)


def _print_report(result: BuildResult, *, verb: str) -> None:
    """Print the build summary followed by diagnostics grouped by page."""
    summary = f"{verb} {result.page_count} pages"
    if result.written:
        summary = f"{summary}, {len(result.written)} files written"
    print(summary)
    counts = [(kind, result.count(kind)) for kind in DiagnosticKind]
    totals = [f"{count} {kind.value}" for kind, count in counts if count]
    if not totals:
        return
    print(", ".join(totals))
    for page_path, diagnostics in result.grouped().items():
        print(page_path or "<root>")
        for diag in diagnostics:
            print(f"  {diag.kind.value}: {diag.detail}")


def _write_report(path: Path, payload: dict[str, typ.Any], exit_code: int) -> None:
    payload = {**payload, "exit_code": exit_code}
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def _execute(
    source: Path,
    site: SiteConfig,
    *,
    write: bool,
    verbose: bool,
    quiet: bool,
    report: Path | None,
) -> int:
    """Run one build and return its exit status."""
    generator = SiteGenerator(site, source, write=write)
    try:
        result = generator.run()
    except SlugCollisionError as exc:
        print(f"error: {exc}", file=sys.stderr)
        if report is not None:
            _write_report(report, build_report(0, [], [exc.to_diagnostic()]), 1)
        return 1

    code = result.exit_code(strict=site.strict)
    if verbose:
        for path in result.written:
            print(f"wrote {_format_path(path)}")
    if not quiet or code:
        _print_report(result, verb="built" if write else "checked")
    if report is not None:
        _write_report(report, result.to_report(), code)
        if verbose:
            print(f"wrote {_format_path(report)}")
    return code


def _prepare(
    source: Path,
    config: Path | None,
    *,
    verbose: bool,
    quiet: bool,
    **overrides: typ.Any,
) -> SiteConfig:
    configure_logging(verbose=verbose, quiet=quiet)
    if not source.is_dir():
        _fail(f"source directory '{_format_path(source)}' does not exist.", 2)
    try:
        return _resolve_config(source, config, **overrides)
    except (FileNotFoundError, SiteConfigError) as exc:
        _fail(str(exc), 2)
    except YAMLError as exc:
        _fail(f"configuration is not valid YAML: {exc}", 2)


@app.command(help="Build a static site from a directory of Markdown notes.")
def build(
    source: typ.Annotated[Path, Parameter(help="Directory holding the notes")],
    *,
    config: typ.Annotated[
        Path | None,
        Parameter(help="Path to grove.yaml (defaults to SOURCE/grove.yaml)"),
    ] = None,
    output_dir: typ.Annotated[
        Path | None, Parameter(help="Override the output folder")
    ] = None,
    base_url: typ.Annotated[
        str | None, Parameter(help="Override the URL prefix for every page")
    ] = None,
    workers: typ.Annotated[
        int | None, Parameter(help="Maximum concurrent page workers")
    ] = None,
    allow_broken_links: typ.Annotated[
        bool, Parameter(help="Do not fail the build on broken references")
    ] = False,
    clean: typ.Annotated[
        bool, Parameter(help="Remove the output folder before writing")
    ] = False,
    verbose: typ.Annotated[
        bool, Parameter(help="List written files and log per-page work")
    ] = False,
    quiet: typ.Annotated[
        bool, Parameter(help="Only print the report when the build fails")
    ] = False,
    report: typ.Annotated[
        Path | None, Parameter(help="Write the build report as JSON")
    ] = None,
) -> None:
    """Build the site rooted at ``source``.

    Parameters
    ----------
    source : Path
        Directory holding the Markdown sources and attachments.
    config : Path or None, optional
        Explicit configuration file; ``SOURCE/grove.yaml`` is used when it
        exists and this is omitted.
    output_dir, base_url, workers : optional
        Overrides for the matching configuration keys.
    allow_broken_links : bool, optional
        Report broken and ambiguous references without failing the build.
    clean : bool, optional
        Remove the output directory before writing.
    verbose, quiet : bool, optional
        Raise or lower the amount of output.
    report : Path or None, optional
        Destination for a JSON copy of the build report.

    Raises
    ------
    SystemExit
        With status 1 when a page failed, a slug collision aborted the build,
        or (unless allowed) references were broken; with status 2 for
        configuration and source-directory errors.
    """
    site = _prepare(
        source,
        config,
        verbose=verbose,
        quiet=quiet,
        output_dir=output_dir,
        base_url=base_url,
        workers=workers,
        allow_broken_links=allow_broken_links,
        clean=clean,
    )
    code = _execute(
        source, site, write=True, verbose=verbose, quiet=quiet, report=report
    )
    if code:
        raise SystemExit(code)


@app.command(help="Validate the content tree and references without writing.")
def check(
    source: typ.Annotated[Path, Parameter(help="Directory holding the notes")],
    *,
    config: typ.Annotated[
        Path | None,
        Parameter(help="Path to grove.yaml (defaults to SOURCE/grove.yaml)"),
    ] = None,
    allow_broken_links: typ.Annotated[
        bool, Parameter(help="Do not fail on broken references")
    ] = False,
    verbose: bool = False,
    quiet: bool = False,
    report: typ.Annotated[
        Path | None, Parameter(help="Write the check report as JSON")
    ] = None,
) -> None:
    """Resolve every page and reference of ``source`` without writing output."""
    site = _prepare(
        source,
        config,
        verbose=verbose,
        quiet=quiet,
        allow_broken_links=allow_broken_links,
    )
    code = _execute(
        source, site, write=False, verbose=verbose, quiet=quiet, report=report
    )
    if code:
        raise SystemExit(code)


def main() -> None:
    """Invoke the Cyclopts application that powers the ``grove`` console command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
