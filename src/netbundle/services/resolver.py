"""Specifier resolution into the remote, local, and external namespaces.

Classification order (first match wins):

1. Absolute ``http(s)://`` specifier → remote.
2. Relative specifier (``./``, ``../``, ``/``) inside a remote importer →
   remote, standard relative-URL resolution against the importer. A
   ``//host/...`` reference would switch hosts and is rejected instead.
3. Platform built-in (or configured external) → external.
4. Any other specifier inside a remote importer → remote, URL-joined
   against the importer.
5. Otherwise local: importer directory (or the project root) first, then
   ancestor module directories for bare specifiers.

A specifier that is not a parseable URL where one is required raises
ResolutionError like any other unresolvable specifier.

INVARIANT: Resolution is a pure function of (specifier, importer) plus
filesystem existence checks. Remote specifiers resolve against the
importer's canonical URL, never against the raw specifier text.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from pathlib import Path
from urllib.parse import urljoin, urlsplit, urlunsplit

from netbundle.domain.builtins import is_builtin
from netbundle.domain.errors import ResolutionError
from netbundle.domain.types import CanonicalLocation
from netbundle.infrastructure.filesystem import (
    DEFAULT_EXTENSIONS,
    DEFAULT_MODULE_DIRS,
    find_in_module_dirs,
    probe_file,
)

logger = logging.getLogger(__name__)

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
_RELATIVE_PREFIXES = ("./", "../", "/")


def is_url(value: str | None) -> bool:
    """Whether *value* is an absolute http(s) URL."""
    return value is not None and _URL_RE.match(value) is not None


def is_relative(specifier: str) -> bool:
    """``./x``, ``../x``, ``/x`` and bare ``.``/``..``; never a ``//host`` reference."""
    if specifier.startswith("//"):
        return False
    return specifier in (".", "..") or specifier.startswith(_RELATIVE_PREFIXES)


def resolve_url(specifier: str, base: str | None) -> str:
    """Standard relative-URL resolution of *specifier* against *base*.

    Dot segments are collapsed and the fragment is dropped; a relative
    specifier never changes the scheme or host of *base*.

    Examples:
        >>> resolve_url("./b.js", "https://x/a/index.js")
        'https://x/a/b.js'
        >>> resolve_url("../c.js", "https://x/a/b/index.js")
        'https://x/a/c.js'

    Raises:
        ValueError: *specifier* or *base* is not a parseable URL.
    """
    joined = urljoin(base, specifier) if base else specifier
    return urlunsplit(urlsplit(joined)._replace(fragment=""))


class SpecifierResolver:
    """Classifies (specifier, importer) pairs into canonical locations.

    Parameters:
        root: Directory used for specifiers without a local importer.
        extensions: Suffixes probed for extension-less local specifiers.
        module_dirs: Directory names searched for bare specifiers.
        externals: Extra module names treated like built-ins.
    """

    def __init__(
        self,
        root: Path | None = None,
        *,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        module_dirs: Sequence[str] = DEFAULT_MODULE_DIRS,
        externals: Sequence[str] = (),
    ) -> None:
        self._root = (root or Path.cwd()).resolve()
        self._extensions = tuple(extensions)
        self._module_dirs = tuple(module_dirs)
        self._externals = frozenset(externals)

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, specifier: str, importer: str | None = None) -> CanonicalLocation:
        """Resolve *specifier* as imported from *importer*.

        Raises:
            ResolutionError: No namespace accepts the specifier.
        """
        if not specifier:
            raise ResolutionError(specifier, importer)

        remote_importer = is_url(importer)

        if is_url(specifier):
            return self._remote(specifier, importer if remote_importer else None, importer)

        if remote_importer and specifier.startswith("//"):
            logger.debug("Refusing host change by %r from %s", specifier, importer)
            raise ResolutionError(specifier, importer)

        if remote_importer and is_relative(specifier):
            return self._remote(specifier, importer, importer)

        if is_builtin(specifier, self._externals):
            return CanonicalLocation.external(specifier)

        if remote_importer:
            return self._remote(specifier, importer, importer)

        return CanonicalLocation.local(str(self._resolve_local(specifier, importer)))

    def _remote(self, specifier: str, base: str | None, importer: str | None) -> CanonicalLocation:
        try:
            return CanonicalLocation.remote(resolve_url(specifier, base))
        except ValueError as exc:
            raise ResolutionError(specifier, importer) from exc

    def _resolve_local(self, specifier: str, importer: str | None) -> Path:
        base_dir = self._importer_dir(importer)
        found = probe_file(base_dir / specifier, self._extensions)
        if found is not None:
            return found

        if not is_relative(specifier) and not Path(specifier).is_absolute():
            found = find_in_module_dirs(
                specifier,
                base_dir,
                module_dirs=self._module_dirs,
                extensions=self._extensions,
            )
            if found is not None:
                return found

        logger.debug("No local match for %r from %s", specifier, importer or self._root)
        raise ResolutionError(specifier, importer)

    def _importer_dir(self, importer: str | None) -> Path:
        if not importer:
            return self._root
        path = Path(importer)
        if not path.is_absolute():
            path = self._root / path
        return path if path.is_dir() else path.parent
