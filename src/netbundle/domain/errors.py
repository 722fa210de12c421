"""Error taxonomy for resolution, loading, and fetching.

Transport, timeout, and HTTP status failures are *retryable*: the fetch
queue requeues the job until its attempt budget is spent, then surfaces
ExhaustedError. Redirect loops and exhaustion are terminal. Resolution
errors are never retried.
"""

from __future__ import annotations


class NetbundleError(Exception):
    """Base class for all netbundle errors."""

    code = "NETBUNDLE_ERROR"


class ResolutionError(NetbundleError):
    """An import specifier could not be placed in any namespace."""

    code = "RESOLUTION_FAILED"

    def __init__(self, specifier: str, importer: str | None = None) -> None:
        self.specifier = specifier
        self.importer = importer
        where = f" (imported from {importer})" if importer else ""
        super().__init__(f"Could not resolve {specifier!r}{where}")


class LoadError(NetbundleError):
    """A resolved location could not be loaded."""

    code = "LOAD_FAILED"

    def __init__(self, location: str, reason: str) -> None:
        self.location = location
        self.reason = reason
        super().__init__(f"Could not load {location}: {reason}")


class FetchError(NetbundleError):
    """Base class for failures of a single logical fetch."""

    code = "FETCH_FAILED"
    retryable = True

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(f"GET {url} failed: {message}")


class TransportError(FetchError):
    """Connection-level failure (DNS, refused, reset, protocol)."""


class FetchTimeoutError(FetchError):
    """No complete response before the deadline."""

    code = "FETCH_TIMEOUT"

    def __init__(self, url: str, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(url, f"timed out after {timeout_ms} ms")


class HttpStatusError(FetchError):
    """Response status that is neither 200 nor a followed redirect."""

    code = "HTTP_STATUS"

    def __init__(self, url: str, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        super().__init__(url, message or f"status {status_code}")


class TooManyRedirectsError(FetchError):
    """Redirect chain longer than the configured bound."""

    code = "TOO_MANY_REDIRECTS"
    retryable = False

    def __init__(self, url: str, max_redirects: int) -> None:
        self.max_redirects = max_redirects
        super().__init__(url, f"more than {max_redirects} redirects")


class ExhaustedError(FetchError):
    """Retry budget consumed; the last underlying failure is kept."""

    code = "FETCH_EXHAUSTED"
    retryable = False

    def __init__(self, url: str, attempts: int, last_error: FetchError) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(url, f"gave up after {attempts} attempts ({last_error})")
