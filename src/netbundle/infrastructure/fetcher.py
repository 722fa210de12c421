"""Redirect-following HTTP fetcher built on httpx.

One call to :meth:`RedirectFollowingFetcher.fetch_once` is one logical
fetch: a GET that follows 301/302/307 hops (resolving ``Location`` against
the current URL) until a 200 arrives, a bound is hit, or the deadline
expires. The whole chain shares a single deadline; on expiry the in-flight
request is cancelled so the pooled connection is released.

The fetcher never touches the content cache. Caching is the queue's job,
so failed or partial attempts can not leak into it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import urljoin, urlsplit

import httpx

from netbundle.domain.errors import (
    FetchTimeoutError,
    HttpStatusError,
    TooManyRedirectsError,
    TransportError,
)

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = frozenset({301, 302, 307})
DEFAULT_TIMEOUT_MS = 5000
DEFAULT_MAX_REDIRECTS = 20
DEFAULT_USER_AGENT = "netbundle"


@dataclass(frozen=True)
class FetchResponse:
    """Body of a completed fetch and the URL it finally came from."""

    url: str
    requested_url: str
    body: bytes
    redirects: int = 0

    @property
    def redirected(self) -> bool:
        return self.url != self.requested_url


def create_client(
    *,
    user_agent: str = DEFAULT_USER_AGENT,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    max_connections: int = 20,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build the shared AsyncClient. Redirects are followed by the fetcher, not httpx."""
    return httpx.AsyncClient(
        follow_redirects=False,
        timeout=httpx.Timeout(timeout_ms / 1000),
        headers={"User-Agent": user_agent},
        limits=httpx.Limits(max_connections=max_connections),
        transport=transport,
    )


class RedirectFollowingFetcher:
    """Performs single logical fetches with redirect and deadline handling.

    Parameters:
        client: httpx AsyncClient used for every request.
        timeout_ms: Deadline for the complete redirect chain.
        max_redirects: Hops allowed before TooManyRedirectsError.
        on_warning: Advisory callback (insecure transport). Must not block.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        on_warning: Callable[[str], None] | None = None,
    ) -> None:
        self._client = client
        self._timeout_ms = timeout_ms
        self._max_redirects = max_redirects
        self._on_warning = on_warning
        self._insecure_warned = False

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    async def fetch_once(self, url: str) -> FetchResponse:
        """GET *url*, following redirects, within the configured deadline.

        Raises:
            FetchTimeoutError: No complete response before the deadline.
            TransportError: Connection-level failure or an undecodable body.
            HttpStatusError: Any status other than 200 or a followed redirect.
            TooManyRedirectsError: Redirect chain exceeded ``max_redirects``.
        """
        try:
            async with asyncio.timeout(self._timeout_ms / 1000):
                return await self._follow(url)
        except TimeoutError as exc:
            logger.debug("Deadline of %d ms hit for %s", self._timeout_ms, url)
            raise FetchTimeoutError(url, self._timeout_ms) from exc

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _follow(self, url: str) -> FetchResponse:
        current = url
        redirects = 0
        while True:
            self._check_transport(current)
            logger.debug("GET %s", current)
            try:
                async with self._client.stream("GET", current) as response:
                    status = response.status_code
                    if status == 200:
                        body = await response.aread()
                        return FetchResponse(
                            url=current, requested_url=url, body=body, redirects=redirects
                        )
                    if status not in REDIRECT_STATUSES:
                        raise HttpStatusError(current, status)
                    location = response.headers.get("location")
                    if not location:
                        raise HttpStatusError(current, status, "redirect without Location header")
            except httpx.TimeoutException as exc:
                raise FetchTimeoutError(current, self._timeout_ms) from exc
            except (httpx.RequestError, httpx.InvalidURL) as exc:
                # Covers decoding of a corrupt compressed body as well as the socket.
                raise TransportError(current, str(exc) or type(exc).__name__) from exc

            redirects += 1
            if redirects > self._max_redirects:
                raise TooManyRedirectsError(url, self._max_redirects)
            try:
                target = urljoin(current, location)
            except ValueError as exc:
                reason = f"invalid Location header {location!r}"
                raise HttpStatusError(current, status, reason) from exc
            logger.debug("Redirect %d: %s -> %s (%d)", redirects, current, target, status)
            current = target

    def _check_transport(self, url: str) -> None:
        """Emit a one-time advisory the first time a plain-http URL is fetched."""
        if self._insecure_warned or urlsplit(url).scheme != "http":
            return
        self._insecure_warned = True
        message = f"Fetching over insecure http: {url}"
        logger.warning(message)
        if self._on_warning is not None:
            self._on_warning(message)
