"""The object every netbundle command receives through ``@click.pass_obj``.

It holds the invocation's settings, builds the reporter pipeline on demand
and turns a ServiceResult into output plus an exit status.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import TYPE_CHECKING, Any, TypeVar

import click

from netbundle.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from netbundle.config.settings import NetbundleSettings
    from netbundle.plugins.events import EventSink
    from netbundle.services.result import ServiceResult

T = TypeVar("T")

LOCAL_PLUGIN_DIR = ".netbundle/plugins"


class AppContext:
    """Per-invocation state. Reporters are discovered on first ``events`` access."""

    def __init__(self, settings: NetbundleSettings) -> None:
        self.settings = settings
        self._events: EventSink | None = None

        from netbundle.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def events(self) -> EventSink:
        """Event sink with the console reporter and discovered plugins."""
        if self._events is None:
            from netbundle.plugins.builtins.console import ConsoleReporter
            from netbundle.plugins.events import EventSink
            from netbundle.plugins.manager import PluginManager

            pm = PluginManager()
            pm.register_plugin(
                ConsoleReporter(
                    show_modules=not (self.settings.quiet or self.settings.json_output)
                ),
                name="console",
            )
            pm.discover_and_load(local_dir=self.settings.project_root / LOCAL_PLUGIN_DIR)
            self._events = EventSink(pm, sync=self.settings.sync)
        return self._events

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run a service coroutine to completion on a fresh event loop."""
        return asyncio.run(coro)

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; a failed result goes to stderr and exits 1.

        Pending reporter events are flushed first so they precede the result.
        Warnings of a successful result go to stderr unless ``--json`` is on
        (the JSON payload already carries them).
        """
        if self._events is not None:
            self._events.shutdown()

        out = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        text = format_result(result, settings=out)
        if not result.ok:
            click.echo(text, err=True)
            raise SystemExit(1)
        click.echo(text)
        if not out.json_output:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)
