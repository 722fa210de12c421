"""Namespaces and canonical module locations.

Every resolved import lands in exactly one of three namespaces. The
namespace decides which loader services the module: the fetch queue for
``remote``, a filesystem read for ``local``, nothing at all for ``external``.

INVARIANT: Two specifiers that resolve to the same CanonicalLocation are
the same cache/fetch unit.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class Namespace(StrEnum):
    """Loader namespaces for resolved modules."""

    REMOTE = "remote"
    LOCAL = "local"
    EXTERNAL = "external"


class CanonicalLocation(BaseModel):
    """Deduplicated identity of a module.

    Attributes:
        namespace: Which loader services the module.
        path: Canonical URL, absolute file path, or external module name.
    """

    model_config = {"frozen": True}

    namespace: Namespace
    path: str

    @classmethod
    def remote(cls, url: str) -> CanonicalLocation:
        return cls(namespace=Namespace.REMOTE, path=url)

    @classmethod
    def local(cls, path: str) -> CanonicalLocation:
        return cls(namespace=Namespace.LOCAL, path=path)

    @classmethod
    def external(cls, name: str) -> CanonicalLocation:
        return cls(namespace=Namespace.EXTERNAL, path=name)

    @property
    def is_remote(self) -> bool:
        return self.namespace is Namespace.REMOTE

    @property
    def is_local(self) -> bool:
        return self.namespace is Namespace.LOCAL

    @property
    def is_external(self) -> bool:
        return self.namespace is Namespace.EXTERNAL

    def __str__(self) -> str:
        return f"{self.namespace}:{self.path}"
