"""Command: show which namespace and location a specifier resolves to."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from netbundle.commands._base import NbCommand

if TYPE_CHECKING:
    from netbundle.commands._context import AppContext


@click.command(
    cls=NbCommand,
    examples="""\
  netbundle resolve ./lib/util.js --importer src/main.js
  netbundle resolve ./b.js --importer https://example.com/a/index.js
  netbundle resolve node:fs
  netbundle -q resolve lodash""",
)
@click.argument("specifier")
@click.option("--importer", default=None, help="Importing file path or URL.")
@click.pass_obj
def resolve(app: AppContext, specifier: str, importer: str | None) -> None:
    """Resolve SPECIFIER as imported from --importer."""
    from netbundle.services.resolve import ResolveService

    app.emit(ResolveService(app.settings).resolve(specifier, importer))
