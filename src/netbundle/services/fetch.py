"""FetchService: fetch one remote module through the queue."""

from __future__ import annotations

from netbundle.domain.errors import ExhaustedError, FetchError
from netbundle.services.base import BaseService
from netbundle.services.resolver import is_url
from netbundle.services.result import ServiceError, ServiceResult


class FetchService(BaseService):
    """Single-URL fetch with the build's retry, redirect, and timeout policy."""

    async def fetch(self, url: str, *, include_body: bool = False) -> ServiceResult:
        op = "fetch"
        if not is_url(url):
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="INVALID_URL",
                    message=f"Not an http(s) URL: {url}",
                ),
            )

        async with self._open_queue() as queue:
            try:
                body = await queue.fetch_and_cache(url)
            except FetchError as exc:
                detail: dict[str, object] = {"url": url}
                if isinstance(exc, ExhaustedError):
                    detail["attempts"] = exc.attempts
                    detail["last_error"] = str(exc.last_error)
                return ServiceResult(
                    ok=False, op=op, error=ServiceError.from_exception(exc, **detail)
                )
            final_url = queue.canonical_url(url)
            attempts = queue.stats.network_fetches

        data: dict[str, object] = {
            "url": url,
            "final_url": final_url,
            "size": len(body),
            "redirected": final_url != url,
            "attempts": attempts,
        }
        if include_body:
            data["body"] = body.decode("utf-8", errors="replace")
        return ServiceResult(ok=True, op=op, data=data)
