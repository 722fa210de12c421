"""Concurrency-bounded fetch queue with per-job retry and request sharing.

Fetch demand flows through one FIFO job channel drained by a fixed pool
of worker tasks; each worker is one worker slot, so at most
``max_concurrency`` fetches are ever in flight. Every URL has at most one
pending job, and every caller asking for that URL awaits the same future.

Pipeline per request: CACHE → SHARE PENDING → ENQUEUE → FETCH →
{CACHE + RESOLVE | REQUEUE | EXHAUST}

INVARIANT: Cache, pending-future map, and redirect aliases are mutated
only on the event loop (single writer).
INVARIANT: The retry budget is spent per job. A job that fails
``retries`` times is exhausted, never requeued again.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from types import TracebackType

from netbundle.domain.errors import ExhaustedError, FetchError
from netbundle.domain.jobs import FetchJob, JobState, default_concurrency
from netbundle.infrastructure.cache import ContentCache
from netbundle.infrastructure.fetcher import RedirectFollowingFetcher
from netbundle.plugins.events import EventSink

logger = logging.getLogger(__name__)

DEFAULT_RETRIES = 3


@dataclass
class QueueStats:
    """Counters for one queue lifetime."""

    requests: int = 0
    cache_hits: int = 0
    shared: int = 0
    network_fetches: int = 0
    retries: int = 0
    failures: int = 0
    peak_in_flight: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class FetchQueue:
    """Serializes remote fetches through a bounded worker pool.

    Parameters:
        fetcher: Performs one logical fetch per attempt.
        cache: Content cache to consult and populate (a fresh one if None).
        max_concurrency: Worker slots; defaults to half the CPUs, minimum 1.
        retries: Attempts per job before it is exhausted.
        events: Receives retry warnings.
        owns_fetcher: Close the fetcher's client in :meth:`aclose`.
    """

    def __init__(
        self,
        fetcher: RedirectFollowingFetcher,
        *,
        cache: ContentCache | None = None,
        max_concurrency: int | None = None,
        retries: int = DEFAULT_RETRIES,
        events: EventSink | None = None,
        owns_fetcher: bool = False,
    ) -> None:
        if retries < 1:
            msg = f"retries must be at least 1, got {retries}"
            raise ValueError(msg)
        self._fetcher = fetcher
        self._cache = cache if cache is not None else ContentCache()
        self._max_concurrency = max(1, max_concurrency or default_concurrency())
        self._retries = retries
        self._events = events or EventSink()
        self._owns_fetcher = owns_fetcher

        self._jobs: asyncio.Queue[FetchJob] = asyncio.Queue()
        self._pending: dict[str, asyncio.Future[bytes]] = {}
        self._aliases: dict[str, str] = {}
        self._workers: list[asyncio.Task[None]] = []
        self._in_flight = 0
        self._closed = False
        self.stats = QueueStats()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def cache(self) -> ContentCache:
        return self._cache

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def is_pending(self, url: str) -> bool:
        return url in self._pending

    def canonical_url(self, url: str) -> str:
        """The URL *url* was last served from (after redirects), else *url*."""
        return self._aliases.get(url, url)

    async def fetch_and_cache(self, url: str) -> bytes:
        """Return the body for *url*, fetching it at most once per queue.

        Raises:
            ExhaustedError: Every attempt failed with a retryable error.
            TooManyRedirectsError: The redirect chain exceeded its bound.
        """
        if self._closed:
            msg = "FetchQueue is closed"
            raise RuntimeError(msg)
        self.stats.requests += 1

        cached = self._cache.get(self.canonical_url(url))
        if cached is not None:
            self.stats.cache_hits += 1
            return cached

        future = self._pending.get(url)
        if future is None:
            future = self._enqueue(url)
        else:
            self.stats.shared += 1
        # A cancelled caller must not cancel the fetch other callers share.
        return await asyncio.shield(future)

    async def join(self) -> None:
        """Wait until every enqueued job (including requeues) has terminated."""
        await self._jobs.join()

    async def aclose(self) -> None:
        """Stop workers, cancel unresolved waiters, close an owned client."""
        if self._closed:
            return
        self._closed = True
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers.clear()
        for future in self._pending.values():
            if not future.done():
                future.cancel()
        self._pending.clear()
        if self._owns_fetcher:
            await self._fetcher.aclose()

    async def __aenter__(self) -> FetchQueue:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _enqueue(self, url: str) -> asyncio.Future[bytes]:
        future: asyncio.Future[bytes] = asyncio.get_running_loop().create_future()
        self._pending[url] = future
        self._start_workers()
        self._jobs.put_nowait(FetchJob(url=url, max_attempts=self._retries))
        logger.debug("Queued %s (%d waiting)", url, self._jobs.qsize())
        return future

    def _start_workers(self) -> None:
        if self._workers:
            return
        for slot in range(self._max_concurrency):
            task = asyncio.create_task(self._worker(), name=f"netbundle-fetch-{slot}")
            self._workers.append(task)

    async def _worker(self) -> None:
        while True:
            job = await self._jobs.get()
            try:
                await self._run(job)
            finally:
                self._jobs.task_done()

    async def _run(self, job: FetchJob) -> None:
        job.start()
        self._in_flight += 1
        self.stats.network_fetches += 1
        self.stats.peak_in_flight = max(self.stats.peak_in_flight, self._in_flight)
        try:
            response = await self._fetcher.fetch_once(job.url)
        except FetchError as exc:
            self._in_flight -= 1
            self._on_failure(job, exc)
            return
        except Exception as exc:
            self._in_flight -= 1
            logger.debug("Unexpected failure fetching %s", job.url, exc_info=True)
            job.record_failure(exc)
            job.transition(JobState.FAILED)
            self.stats.failures += 1
            self._settle(job.url, error=exc)
            return

        self._in_flight -= 1
        job.redirects = response.redirects
        job.transition(JobState.SUCCEEDED)
        body = self._cache.put(response.url, response.body)
        if response.redirected:
            self._aliases[job.url] = response.url
        logger.debug("Fetched %s (%d bytes, attempt %d)", response.url, len(body), job.attempts)
        self._settle(job.url, body=body)

    def _on_failure(self, job: FetchJob, exc: FetchError) -> None:
        can_retry = job.record_failure(exc) and exc.retryable
        if can_retry and not self._closed:
            job.transition(JobState.REQUEUED)
            self.stats.retries += 1
            message = f"Retrying {job.url} ({job.attempts}/{job.max_attempts}): {exc}"
            logger.info(message)
            self._events.warning(message)
            job.transition(JobState.QUEUED)
            self._jobs.put_nowait(job)
            return

        self.stats.failures += 1
        if exc.retryable:
            job.transition(JobState.EXHAUSTED)
            error: FetchError = ExhaustedError(job.url, job.attempts, exc)
        else:
            job.transition(JobState.FAILED)
            error = exc
        logger.debug("Giving up on %s: %s", job.url, error)
        self._settle(job.url, error=error)

    def _settle(
        self, url: str, *, body: bytes | None = None, error: BaseException | None = None
    ) -> None:
        """Resolve or fail the shared future for *url* and forget it."""
        future = self._pending.pop(url, None)
        if future is None or future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            assert body is not None
            future.set_result(body)
