"""ResolveService: report where one specifier resolves to."""

from __future__ import annotations

from netbundle.domain.errors import ResolutionError
from netbundle.services.base import BaseService
from netbundle.services.resolver import SpecifierResolver
from netbundle.services.result import ServiceError, ServiceResult


class ResolveService(BaseService):
    """Runs the resolver with the ``[resolve]`` settings; no network access."""

    def resolve(self, specifier: str, importer: str | None = None) -> ServiceResult:
        op = "resolve"
        cfg = self._settings.resolve
        resolver = SpecifierResolver(
            self._settings.project_root,
            extensions=cfg.extensions,
            module_dirs=cfg.module_dirs,
            externals=cfg.externals,
        )
        try:
            location = resolver.resolve(specifier, importer)
        except ResolutionError as exc:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError.from_exception(exc, specifier=specifier, importer=importer),
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "specifier": specifier,
                "importer": importer,
                "namespace": str(location.namespace),
                "path": location.path,
            },
        )
