"""BuildService: walk the import graph from the entry points.

Pipeline: RESOLVE ENTRIES → LOAD + SCAN (concurrent) → RESOLVE IMPORTS →
SCHEDULE UNSEEN → REPORT → WRITE MANIFEST

This is the adapter seat a bundler occupies: every import goes through
the resolver, every module through the loader. A failed module is
reported and recorded, unrelated modules keep loading, and the build as
a whole fails.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from netbundle import __version__
from netbundle.domain.errors import NetbundleError, ResolutionError
from netbundle.domain.imports import scan_imports
from netbundle.domain.types import CanonicalLocation, Namespace
from netbundle.infrastructure.filesystem import write_manifest
from netbundle.plugins.events import EventSink
from netbundle.services.base import BaseService
from netbundle.services.loader import ModuleLoader
from netbundle.services.resolver import SpecifierResolver
from netbundle.services.result import ServiceError, ServiceResult

logger = logging.getLogger(__name__)

# Module types that can not contain import statements.
_OPAQUE_SUFFIXES = (".json", ".css", ".wasm")


@dataclass
class ModuleRecord:
    """One loaded module in the graph."""

    location: CanonicalLocation
    base: str
    size: int
    imports: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "namespace": str(self.location.namespace),
            "path": self.location.path,
            "base": self.base,
            "size": self.size,
            "imports": self.imports,
        }


class ImportGraphWalker:
    """Loads modules concurrently and follows their imports exactly once each."""

    def __init__(self, resolver: SpecifierResolver, loader: ModuleLoader, events: EventSink) -> None:
        self._resolver = resolver
        self._loader = loader
        self._events = events
        self._seen: set[CanonicalLocation] = set()
        self._tasks: asyncio.TaskGroup | None = None
        self.entries: list[CanonicalLocation] = []
        self.modules: dict[CanonicalLocation, ModuleRecord] = {}
        self.externals: set[str] = set()
        self.failures: list[dict[str, Any]] = []

    async def walk(self, entry_points: Sequence[str]) -> None:
        async with asyncio.TaskGroup() as tasks:
            self._tasks = tasks
            for entry in entry_points:
                location = self._resolve(entry, None)
                if location is None:
                    continue
                self.entries.append(location)
                self._schedule(location)
        self._tasks = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _resolve(self, specifier: str, importer: str | None) -> CanonicalLocation | None:
        try:
            location = self._resolver.resolve(specifier, importer)
        except ResolutionError as exc:
            self._fail(exc, specifier=specifier, importer=importer)
            return None
        if location.is_external:
            self.externals.add(location.path)
        return location

    def _schedule(self, location: CanonicalLocation) -> None:
        if location.is_external or location in self._seen:
            return
        self._seen.add(location)
        assert self._tasks is not None
        self._tasks.create_task(self._visit(location))

    async def _visit(self, location: CanonicalLocation) -> None:
        self._events.module_started(location.path)
        try:
            loaded = await self._loader.load(location)
        except NetbundleError as exc:
            self._fail(exc, specifier=location.path, importer=None)
            return
        except Exception as exc:
            logger.exception("Unexpected failure loading %s", location)
            self._fail(exc, specifier=location.path, importer=None)
            return

        record = ModuleRecord(location=location, base=loaded.base, size=loaded.size)
        if not location.path.lower().endswith(_OPAQUE_SUFFIXES):
            for specifier in scan_imports(loaded.text()):
                child = self._resolve(specifier, loaded.base)
                if child is None:
                    continue
                record.imports.append(child.path)
                self._schedule(child)

        self.modules[location] = record
        logger.debug("Loaded %s (%d bytes, %d imports)", location, record.size, len(record.imports))
        self._events.module_completed(location.path)

    def _fail(self, exc: Exception, *, specifier: str, importer: str | None) -> None:
        self.failures.append(
            {
                "code": exc.code if isinstance(exc, NetbundleError) else "UNEXPECTED_ERROR",
                "specifier": specifier,
                "importer": importer,
                "message": str(exc),
            }
        )
        self._events.error(str(exc))


class BuildService(BaseService):
    """Drives a build: resolution, loading, reporting, manifest output."""

    async def build(
        self,
        entry_points: Sequence[str] | None = None,
        *,
        outfile: str | None = None,
        write: bool = True,
    ) -> ServiceResult:
        """Walk the import graph from *entry_points* (default: ``[build]`` config)."""
        op = "build"
        cfg = self._settings.build
        entries = list(entry_points or cfg.entry_points)
        resolve_cfg = self._settings.resolve
        resolver = SpecifierResolver(
            self._settings.project_root,
            extensions=resolve_cfg.extensions,
            module_dirs=resolve_cfg.module_dirs,
            externals=resolve_cfg.externals,
        )

        async with self._open_queue() as queue:
            walker = ImportGraphWalker(resolver, ModuleLoader(queue), self._events)
            await walker.walk(entries)
            stats = queue.stats.to_dict()
            bytes_fetched = queue.cache.total_bytes

        modules = sorted(
            walker.modules.values(),
            key=lambda m: (m.location.namespace != Namespace.LOCAL, m.location.path),
        )
        data: dict[str, Any] = {
            "entry_points": [loc.path for loc in walker.entries],
            "modules": [m.to_dict() for m in modules],
            "module_count": len(modules),
            "remote_count": sum(1 for m in modules if m.location.is_remote),
            "local_count": sum(1 for m in modules if m.location.is_local),
            "externals": sorted(walker.externals),
            "bytes_fetched": bytes_fetched,
            "network_fetches": stats["network_fetches"],
            "cache_hits": stats["cache_hits"],
            "retries": stats["retries"],
        }

        if walker.failures:
            count = len(walker.failures)
            return ServiceResult(
                ok=False,
                op=op,
                data=data,
                error=ServiceError(
                    code="BUILD_FAILED",
                    message=f"{count} module{'s' if count != 1 else ''} failed to resolve or load",
                    detail={"failures": walker.failures},
                ),
            )

        if write:
            target = Path(outfile or cfg.outfile)
            if not target.is_absolute():
                target = self._settings.project_root / target
            manifest = {
                "generator": f"netbundle {__version__}",
                "entry_points": data["entry_points"],
                "modules": data["modules"],
                "externals": data["externals"],
            }
            data["manifest"] = str(write_manifest(target, manifest))

        return ServiceResult(ok=True, op=op, data=data)
