"""Shared Rich theme and the buffer-backed Console used by the renderers."""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

NB_THEME = Theme(
    {
        "nb.ok": "bold green",
        "nb.error": "bold red",
        "nb.warning": "bold yellow",
        "nb.op": "bold cyan",
        "nb.key": "dim",
        "nb.path": "dim",
        "nb.size": "magenta",
        "nb.ns.remote": "blue",
        "nb.ns.local": "green",
        "nb.ns.external": "yellow",
    }
)

DEFAULT_WIDTH = 120


def create_console(*, width: int = DEFAULT_WIDTH) -> Console:
    """Console writing into memory; Rich drops ANSI codes when not on a TTY."""
    return Console(file=StringIO(), theme=NB_THEME, highlight=False, width=width)


def get_output(console: Console) -> str:
    buffer = console.file
    if not isinstance(buffer, StringIO):
        msg = "console was not created by create_console()"
        raise TypeError(msg)
    return buffer.getvalue()


def style_for_namespace(namespace: str) -> str:
    style = f"nb.ns.{namespace}"
    return style if namespace in ("remote", "local", "external") else ""
