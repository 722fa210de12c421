"""Root CLI group for netbundle with global flags and command registration."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import click

from netbundle import __version__
from netbundle.commands import register_commands
from netbundle.commands._base import NbGroup
from netbundle.commands._context import AppContext
from netbundle.config.settings import NetbundleSettings

# Flags shared by every subcommand; each maps 1:1 onto a settings field.
_GLOBAL_FLAGS: tuple[tuple[tuple[str, ...], str, str], ...] = (
    (("--json",), "json_output", "Structured JSON output."),
    (("-q", "--quiet"), "quiet", "Minimal output."),
    (("-v", "--verbose"), "verbose", "Detailed output with debug logging."),
    (("--log-json",), "log_json", "Structured JSON log output to stderr."),
    (("--sync",), "sync", "Dispatch reporter events inline."),
)


def _global_flags(func: Callable[..., Any]) -> Callable[..., Any]:
    for decls, dest, help_text in reversed(_GLOBAL_FLAGS):
        func = click.option(*decls, dest, is_flag=True, help=help_text)(func)
    return func


@click.group(cls=NbGroup, invoke_without_command=True)
@click.version_option(version=__version__, prog_name="netbundle")
@_global_flags
@click.option("-c", "--config", "config_path", default=None, help="Use this config file.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, **flags: bool) -> None:
    """netbundle: resolve and fetch modules across URLs, files, and built-ins."""
    ctx.obj = AppContext(NetbundleSettings.from_cli(config_path=config_path, **flags))
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
