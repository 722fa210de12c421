"""In-memory content cache keyed by canonical URL.

INVARIANT: Entries are immutable once written and never removed for the
lifetime of the cache. One cache is constructed per build invocation and
handed to the fetch queue; nothing persists across processes.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator

logger = logging.getLogger(__name__)


class ContentCache:
    """Mapping of canonical URL to fetched body bytes.

    ``put`` is idempotent: the first body stored for a URL wins and later
    writes for the same key are ignored. The lock only matters when the
    cache is shared with threads outside the event loop.
    """

    def __init__(self) -> None:
        self._entries: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def get(self, url: str) -> bytes | None:
        """Return the cached body for *url*, or None."""
        return self._entries.get(url)

    def put(self, url: str, body: bytes) -> bytes:
        """Store *body* under *url* unless present. Returns the stored body."""
        with self._lock:
            existing = self._entries.get(url)
            if existing is not None:
                if existing != body:
                    logger.debug("Ignoring differing body for cached %s", url)
                return existing
            self._entries[url] = bytes(body)
            return self._entries[url]

    def urls(self) -> list[str]:
        """Cached URLs in insertion order."""
        return list(self._entries)

    @property
    def total_bytes(self) -> int:
        return sum(len(body) for body in self._entries.values())

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.urls())
