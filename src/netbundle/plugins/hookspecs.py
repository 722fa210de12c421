"""Pluggy hook specifications for build progress and diagnostics.

Four fire-and-forget events, none with a return value. A build with no
registered reporters runs exactly the same, just silently.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("netbundle")
hookimpl = pluggy.HookimplMarker("netbundle")


class NetbundleHookSpec:
    """Hook specifications for the netbundle event sink."""

    @hookspec
    def module_started(self, name: str) -> None:
        """Called when a module begins loading."""

    @hookspec
    def module_completed(self, name: str) -> None:
        """Called when a module has loaded and its imports are scheduled."""

    @hookspec
    def warning(self, text: str) -> None:
        """Called for non-fatal advisories (retries, insecure transport)."""

    @hookspec
    def error(self, text: str) -> None:
        """Called for a terminal failure of one module."""
