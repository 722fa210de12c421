"""Tests for the bounded fetch queue: sharing, retry, caching, ordering."""

from __future__ import annotations

import asyncio
import time

import pytest

from netbundle.domain.errors import (
    ExhaustedError,
    FetchTimeoutError,
    TooManyRedirectsError,
    TransportError,
)
from netbundle.infrastructure.cache import ContentCache
from netbundle.services.queue import FetchQueue
from tests.helpers import FakeWeb, connect_error, ok, recording_sink, redirect


class TestSharing:
    def test_concurrent_requests_share_one_fetch(self) -> None:
        web = FakeWeb({"https://x/a.js": ok("a")}, latency=0.02)

        async def scenario() -> list[bytes]:
            async with web.queue(max_concurrency=4) as queue:
                bodies = await asyncio.gather(
                    *(queue.fetch_and_cache("https://x/a.js") for _ in range(10))
                )
                assert queue.stats.shared == 9
                return list(bodies)

        bodies = asyncio.run(scenario())
        assert bodies == [b"a"] * 10
        assert web.count("https://x/a.js") == 1

    def test_cached_url_is_not_fetched_again(self) -> None:
        web = FakeWeb({"https://x/a.js": ok("a")})

        async def scenario() -> FetchQueue:
            async with web.queue() as queue:
                await queue.fetch_and_cache("https://x/a.js")
                await queue.fetch_and_cache("https://x/a.js")
                return queue

        queue = asyncio.run(scenario())
        assert web.count("https://x/a.js") == 1
        assert queue.stats.cache_hits == 1
        assert queue.stats.requests == 2

    def test_prefilled_cache_skips_network(self) -> None:
        cache = ContentCache()
        cache.put("https://x/a.js", b"cached")
        web = FakeWeb()

        async def scenario() -> bytes:
            async with web.queue(cache=cache) as queue:
                return await queue.fetch_and_cache("https://x/a.js")

        assert asyncio.run(scenario()) == b"cached"
        assert web.calls == []

    def test_cancelled_waiter_does_not_cancel_shared_fetch(self) -> None:
        web = FakeWeb({"https://x/a.js": ok("a")}, latency=0.05)

        async def scenario() -> bytes:
            async with web.queue() as queue:
                first = asyncio.create_task(queue.fetch_and_cache("https://x/a.js"))
                second = asyncio.create_task(queue.fetch_and_cache("https://x/a.js"))
                await asyncio.sleep(0.01)
                first.cancel()
                body = await second
                with pytest.raises(asyncio.CancelledError):
                    await first
                return body

        assert asyncio.run(scenario()) == b"a"
        assert web.count("https://x/a.js") == 1


class TestRetry:
    def test_exhausts_after_exactly_retries_attempts(self) -> None:
        web = FakeWeb({"https://x/down.js": connect_error()})

        async def scenario() -> None:
            async with web.queue(retries=3) as queue:
                await queue.fetch_and_cache("https://x/down.js")

        with pytest.raises(ExhaustedError) as exc_info:
            asyncio.run(scenario())
        assert web.count("https://x/down.js") == 3
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.last_error, TransportError)

    def test_succeeds_on_last_attempt(self) -> None:
        web = FakeWeb({"https://x/flaky.js": [connect_error(), connect_error(), ok("finally")]})

        async def scenario() -> tuple[bytes, int]:
            async with web.queue(retries=3) as queue:
                body = await queue.fetch_and_cache("https://x/flaky.js")
                return body, queue.stats.retries

        body, retries = asyncio.run(scenario())
        assert body == b"finally"
        assert retries == 2
        assert web.count("https://x/flaky.js") == 3

    def test_timeouts_are_retried(self) -> None:
        async def slow(request: object) -> object:
            await asyncio.sleep(5)
            return ok("late")

        web = FakeWeb({"https://x/slow.js": slow})

        async def scenario() -> None:
            async with web.queue(retries=2, fetcher_kwargs={"timeout_ms": 30}) as queue:
                await queue.fetch_and_cache("https://x/slow.js")

        started = time.monotonic()
        with pytest.raises(ExhaustedError) as exc_info:
            asyncio.run(scenario())
        elapsed = time.monotonic() - started
        # Two attempts, each with its own 30 ms deadline.
        assert 0.055 <= elapsed < 2.0
        assert isinstance(exc_info.value.last_error, FetchTimeoutError)
        assert web.count("https://x/slow.js") == 2

    def test_redirect_loop_is_not_retried(self) -> None:
        web = FakeWeb({"https://x/loop": redirect("/loop")})

        async def scenario() -> None:
            async with web.queue(retries=3) as queue:
                await queue.fetch_and_cache("https://x/loop")

        with pytest.raises(TooManyRedirectsError):
            asyncio.run(scenario())
        assert web.count("https://x/loop") == 21

    def test_requeued_job_goes_to_back_of_queue(self) -> None:
        web = FakeWeb(
            {
                "https://x/a.js": [connect_error(), ok("a")],
                "https://x/b.js": ok("b"),
                "https://x/c.js": ok("c"),
            }
        )

        async def scenario() -> None:
            async with web.queue(max_concurrency=1) as queue:
                await asyncio.gather(
                    queue.fetch_and_cache("https://x/a.js"),
                    queue.fetch_and_cache("https://x/b.js"),
                    queue.fetch_and_cache("https://x/c.js"),
                )

        asyncio.run(scenario())
        assert web.calls == [
            "https://x/a.js",
            "https://x/b.js",
            "https://x/c.js",
            "https://x/a.js",
        ]

    def test_retry_emits_warning(self) -> None:
        web = FakeWeb({"https://x/flaky.js": [connect_error(), ok("ok")]})
        sink, recorder = recording_sink()

        async def scenario() -> None:
            async with web.queue(events=sink) as queue:
                await queue.fetch_and_cache("https://x/flaky.js")

        asyncio.run(scenario())
        warnings = recorder.of("warning")
        assert len(warnings) == 1
        assert "Retrying https://x/flaky.js (1/3)" in warnings[0]

    def test_retries_must_be_positive(self) -> None:
        web = FakeWeb()
        with pytest.raises(ValueError, match="retries"):
            FetchQueue(web.fetcher(), retries=0)


class TestConcurrency:
    def test_in_flight_never_exceeds_bound(self) -> None:
        urls = [f"https://x/m{i}.js" for i in range(8)]
        web = FakeWeb({url: ok(url) for url in urls}, latency=0.02)

        async def scenario() -> int:
            async with web.queue(max_concurrency=2) as queue:
                await asyncio.gather(*(queue.fetch_and_cache(url) for url in urls))
                return queue.stats.peak_in_flight

        peak = asyncio.run(scenario())
        assert peak == 2
        assert web.peak_in_flight <= 2
        assert len(web.calls) == 8

    def test_default_concurrency_is_at_least_one(self) -> None:
        web = FakeWeb()
        queue = FetchQueue(web.fetcher(), max_concurrency=0)
        assert queue.max_concurrency >= 1


class TestRedirectCaching:
    def test_body_cached_under_final_url(self) -> None:
        web = FakeWeb({"https://x/latest": redirect("/v2/mod.js"), "https://x/v2/mod.js": ok("v2")})

        async def scenario() -> FetchQueue:
            async with web.queue() as queue:
                assert await queue.fetch_and_cache("https://x/latest") == b"v2"
                assert queue.canonical_url("https://x/latest") == "https://x/v2/mod.js"
                # both the alias and the final URL are now cache hits
                await queue.fetch_and_cache("https://x/latest")
                await queue.fetch_and_cache("https://x/v2/mod.js")
                return queue

        queue = asyncio.run(scenario())
        assert queue.cache.urls() == ["https://x/v2/mod.js"]
        assert queue.stats.cache_hits == 2
        assert web.calls == ["https://x/latest", "https://x/v2/mod.js"]


class TestLifecycle:
    def test_closed_queue_rejects_requests(self) -> None:
        web = FakeWeb()

        async def scenario() -> None:
            queue = web.queue()
            await queue.aclose()
            await queue.fetch_and_cache("https://x/a.js")

        with pytest.raises(RuntimeError, match="closed"):
            asyncio.run(scenario())

    def test_join_waits_for_all_jobs(self) -> None:
        web = FakeWeb({"https://x/a.js": [connect_error(), ok("a")]})

        async def scenario() -> bool:
            async with web.queue() as queue:
                task = asyncio.create_task(queue.fetch_and_cache("https://x/a.js"))
                await asyncio.sleep(0)
                await queue.join()
                done = task.done() or queue.cache.get("https://x/a.js") is not None
                await task
                return done

        assert asyncio.run(scenario())
