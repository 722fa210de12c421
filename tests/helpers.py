"""Simulated HTTP endpoints for fetcher, queue, and build tests."""

from __future__ import annotations

import asyncio
import inspect
from collections import Counter
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from netbundle.infrastructure.fetcher import RedirectFollowingFetcher, create_client
from netbundle.plugins.events import EventSink
from netbundle.plugins.hookspecs import hookimpl
from netbundle.plugins.manager import PluginManager
from netbundle.services.queue import FetchQueue

Route = httpx.Response | Exception | Callable[[httpx.Request], Any]


def ok(body: str | bytes) -> httpx.Response:
    content = body.encode() if isinstance(body, str) else body
    return httpx.Response(200, content=content)


def redirect(location: str, status: int = 302) -> httpx.Response:
    return httpx.Response(status, headers={"Location": location})


def connect_error(message: str = "connection refused") -> httpx.ConnectError:
    return httpx.ConnectError(message)


class FakeWeb:
    """URL → response routing behind ``httpx.MockTransport``.

    A route may be a response, an exception to raise, a callable (sync or
    async) taking the request, or a list of those consumed one per request
    (the last entry repeats). Unknown URLs answer 404.
    """

    def __init__(self, routes: dict[str, Route | list[Route]] | None = None, *, latency: float = 0.0):
        self.routes: dict[str, Route | list[Route]] = dict(routes or {})
        self.latency = latency
        self.calls: list[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0

    def count(self, url: str) -> int:
        return Counter(self.calls)[url]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def client(self) -> httpx.AsyncClient:
        return create_client(transport=self.transport)

    def fetcher(self, **kwargs: Any) -> RedirectFollowingFetcher:
        kwargs.setdefault("timeout_ms", 2000)
        return RedirectFollowingFetcher(self.client(), **kwargs)

    def queue(self, *, fetcher_kwargs: dict[str, Any] | None = None, **kwargs: Any) -> FetchQueue:
        """FetchQueue over this web. Call inside a running event loop."""
        return FetchQueue(self.fetcher(**(fetcher_kwargs or {})), owns_fetcher=True, **kwargs)

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
            route = self.routes.get(url)
            if route is None:
                return httpx.Response(404)
            if isinstance(route, list):
                route = route.pop(0) if len(route) > 1 else route[0]
            if isinstance(route, Exception):
                raise route
            if callable(route):
                # Callables build a new response per request; return it unread.
                produced = route(request)
                if inspect.isawaitable(produced):
                    produced = await produced
                return produced
            return _fresh(route)
        finally:
            self.in_flight -= 1


def _fresh(response: httpx.Response) -> httpx.Response:
    """Copy a canned response so each request gets an unread stream."""
    return httpx.Response(
        response.status_code, headers=response.headers, content=response.content
    )


class Recorder:
    """Reporter plugin that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    @hookimpl
    def module_started(self, name: str) -> None:
        self.events.append(("module_started", name))

    @hookimpl
    def module_completed(self, name: str) -> None:
        self.events.append(("module_completed", name))

    @hookimpl
    def warning(self, text: str) -> None:
        self.events.append(("warning", text))

    @hookimpl
    def error(self, text: str) -> None:
        self.events.append(("error", text))

    def of(self, kind: str) -> list[str]:
        return [value for name, value in self.events if name == kind]


def recording_sink() -> tuple[EventSink, Recorder]:
    """Inline event sink wired to a fresh Recorder."""
    recorder = Recorder()
    pm = PluginManager()
    pm.register_plugin(recorder, name="recorder")
    return EventSink(pm, sync=True), recorder


def route_cli_through(web: FakeWeb, monkeypatch: pytest.MonkeyPatch) -> None:
    """Make every client the CLI creates talk to *web*."""

    def patched(**kwargs: Any) -> httpx.AsyncClient:
        kwargs["transport"] = web.transport
        return create_client(**kwargs)

    monkeypatch.setattr("netbundle.infrastructure.fetcher.create_client", patched)


def corrupt_gzip(request: httpx.Request) -> httpx.Response:
    """Route answering 200 with a gzip header over a body that is not gzip."""
    return httpx.Response(
        200, headers={"Content-Encoding": "gzip"}, stream=httpx.ByteStream(b"not gzip")
    )
