"""Command: fetch one URL with the build's retry, redirect, and timeout policy."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from netbundle.commands._base import NbCommand

if TYPE_CHECKING:
    from netbundle.commands._context import AppContext


@click.command(
    cls=NbCommand,
    examples="""\
  netbundle fetch https://esm.sh/preact
  netbundle fetch https://example.com/mod.js --raw > mod.js
  netbundle --json fetch https://example.com/mod.js""",
)
@click.argument("url")
@click.option("--raw", is_flag=True, help="Write the body to stdout instead of a summary.")
@click.pass_obj
def fetch(app: AppContext, url: str, raw: bool) -> None:
    """Fetch URL, following redirects, and report where it came from."""
    from netbundle.services.fetch import FetchService

    result = app.run(FetchService(app.settings, app.events).fetch(url, include_body=raw))
    if raw and result.ok:
        app.events.shutdown()
        click.echo(result.data["body"], nl=False)
        return
    app.emit(result)
