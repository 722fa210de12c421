"""Command: walk the import graph from the entry points and write a manifest."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from netbundle.commands._base import NbCommand

if TYPE_CHECKING:
    from netbundle.commands._context import AppContext


@click.command(
    cls=NbCommand,
    examples="""\
  netbundle build
  netbundle build src/main.js
  netbundle build app.js worker.js -o dist/modules.json
  netbundle build --max-concurrency 8 --timeout-ms 10000 --retries 5
  netbundle --json build --no-write""",
)
@click.argument("entry_points", nargs=-1)
@click.option("-o", "--outfile", default=None, help="Manifest output path.")
@click.option(
    "--max-concurrency",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum concurrent fetches.",
)
@click.option(
    "--timeout-ms", type=click.IntRange(min=1), default=None, help="Per-fetch deadline (ms)."
)
@click.option(
    "--retries", type=click.IntRange(min=1), default=None, help="Attempts per remote module."
)
@click.option(
    "--max-redirects", type=click.IntRange(min=0), default=None, help="Redirects per fetch."
)
@click.option("--no-write", is_flag=True, help="Resolve and fetch only; skip the manifest.")
@click.pass_obj
def build(
    app: AppContext,
    entry_points: tuple[str, ...],
    outfile: str | None,
    max_concurrency: int | None,
    timeout_ms: int | None,
    retries: int | None,
    max_redirects: int | None,
    no_write: bool,
) -> None:
    """Resolve and load every module reachable from the entry points."""
    from netbundle.services.build import BuildService

    settings = app.settings.with_overrides(
        fetch={
            "max_concurrency": max_concurrency,
            "timeout_ms": timeout_ms,
            "retries": retries,
            "max_redirects": max_redirects,
        },
    )
    svc = BuildService(settings, app.events)
    app.emit(app.run(svc.build(entry_points or None, outfile=outfile, write=not no_write)))
