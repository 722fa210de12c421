"""BaseService: shared construction for netbundle services.

Every service receives the frozen settings and the event sink. Services
that touch the network own an asyncio lifetime and expose ``async`` entry
points; the CLI drives them with ``asyncio.run``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from netbundle.plugins.events import EventSink

if TYPE_CHECKING:
    import httpx

    from netbundle.config.settings import NetbundleSettings
    from netbundle.infrastructure.cache import ContentCache
    from netbundle.services.queue import FetchQueue

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class FetchService(BaseService):
            async def fetch(self, url: str) -> ServiceResult:
                async with self._open_queue() as queue:
                    ...
    """

    def __init__(
        self,
        settings: NetbundleSettings,
        events: EventSink | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._events = events or EventSink()
        self._transport = transport

    def _open_queue(self, cache: ContentCache | None = None) -> FetchQueue:
        """Build a fetch queue (and its client) from the ``[fetch]`` settings."""
        from netbundle.infrastructure.fetcher import RedirectFollowingFetcher, create_client
        from netbundle.services.queue import FetchQueue

        cfg = self._settings.fetch
        client = create_client(
            user_agent=cfg.user_agent,
            timeout_ms=cfg.timeout_ms,
            max_connections=max(cfg.max_concurrency, 1),
            transport=self._transport,
        )
        fetcher = RedirectFollowingFetcher(
            client,
            timeout_ms=cfg.timeout_ms,
            max_redirects=cfg.max_redirects,
            on_warning=self._events.warning,
        )
        return FetchQueue(
            fetcher,
            cache=cache,
            max_concurrency=cfg.max_concurrency,
            retries=cfg.retries,
            events=self._events,
            owns_fetcher=True,
        )
