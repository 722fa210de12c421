"""Module loading by namespace.

Remote locations go through the fetch queue, local locations are read
straight from disk, external locations are never loaded. The returned
``base`` is what the module's own imports must resolve against: the
final (post-redirect) URL for remote modules, the file path for local.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from netbundle.domain.errors import LoadError
from netbundle.domain.types import CanonicalLocation, Namespace
from netbundle.infrastructure.filesystem import read_module_file
from netbundle.services.queue import FetchQueue


@dataclass(frozen=True)
class LoadResult:
    """Contents of a loaded module plus its base for further resolution."""

    location: CanonicalLocation
    contents: bytes
    base: str

    @property
    def size(self) -> int:
        return len(self.contents)

    def text(self) -> str:
        return self.contents.decode("utf-8", errors="replace")


class ModuleLoader:
    """Routes a canonical location to the loader for its namespace."""

    def __init__(self, queue: FetchQueue) -> None:
        self._queue = queue

    async def load(self, location: CanonicalLocation) -> LoadResult:
        """Load *location*.

        Raises:
            LoadError: External location, or unreadable local file.
            FetchError: Remote fetch exhausted or redirected too often.
        """
        if location.namespace is Namespace.REMOTE:
            body = await self._queue.fetch_and_cache(location.path)
            return LoadResult(location, body, self._queue.canonical_url(location.path))
        if location.namespace is Namespace.LOCAL:
            body = read_module_file(Path(location.path))
            return LoadResult(location, body, location.path)
        raise LoadError(location.path, "external modules are never loaded")
