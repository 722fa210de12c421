"""Subcommand modules for netbundle.

register_commands() imports command modules lazily so ``netbundle --help``
stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the standalone commands on the root CLI group."""
    from netbundle.commands.build import build
    from netbundle.commands.fetch import fetch
    from netbundle.commands.resolve import resolve

    cli.add_command(build)
    cli.add_command(resolve)
    cli.add_command(fetch)
