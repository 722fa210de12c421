"""Rich console reporter for build events (stderr)."""

from __future__ import annotations

import threading

from rich.console import Console
from rich.text import Text

from netbundle.output.console import NB_THEME
from netbundle.plugins.hookspecs import hookimpl


class ConsoleReporter:
    """Prints one line per event to stderr.

    With ``show_modules=False`` only warnings and errors are printed, which
    is what ``--quiet`` uses.
    """

    def __init__(self, console: Console | None = None, *, show_modules: bool = True) -> None:
        self._console = console or Console(stderr=True, theme=NB_THEME, highlight=False)
        self._show_modules = show_modules
        self._lock = threading.Lock()
        self.started = 0
        self.completed = 0

    @hookimpl
    def module_started(self, name: str) -> None:
        with self._lock:
            self.started += 1
        if self._show_modules:
            self._console.print(Text("📦 ", style="nb.op"), Text(name, style="nb.path"), sep="")

    @hookimpl
    def module_completed(self, name: str) -> None:
        with self._lock:
            self.completed += 1

    @hookimpl
    def warning(self, text: str) -> None:
        self._console.print(Text("WARNING ", style="nb.warning"), Text(text), sep="")

    @hookimpl
    def error(self, text: str) -> None:
        self._console.print(Text("ERROR ", style="nb.error"), Text(text), sep="")
