"""Filesystem access for the local namespace.

Path probing follows the node/esbuild conventions: the exact path, then
the path with each configured extension, then ``index.<ext>`` inside a
directory. Package directories honour ``module`` and ``main`` from
``package.json``. Existence checks are the only acceptance test.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Sequence
from pathlib import Path

from netbundle.domain.errors import LoadError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: tuple[str, ...] = (".js", ".mjs", ".cjs", ".ts", ".jsx", ".tsx", ".json")
DEFAULT_MODULE_DIRS: tuple[str, ...] = ("node_modules",)

# package.json fields consulted for a package entry point, in order.
_ENTRY_FIELDS = ("module", "main")


# ---------------------------------------------------------------------------
# Probing
# ---------------------------------------------------------------------------


def probe_file(candidate: Path, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> Path | None:
    """Return the first existing file for *candidate*, or None.

    Tries ``candidate``, ``candidate + ext`` for each extension, then
    (for directories) the package entry point and ``index + ext``.
    """
    if candidate.is_file():
        return candidate.resolve()
    for ext in extensions:
        with_ext = candidate.with_name(candidate.name + ext)
        if with_ext.is_file():
            return with_ext.resolve()
    if candidate.is_dir():
        entry = _package_entry(candidate, extensions)
        if entry is not None:
            return entry
        for ext in extensions:
            index = candidate / f"index{ext}"
            if index.is_file():
                return index.resolve()
    return None


def _package_entry(package_dir: Path, extensions: Sequence[str]) -> Path | None:
    """Resolve the entry file declared by ``package.json``, if any."""
    manifest = package_dir / "package.json"
    if not manifest.is_file():
        return None
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.debug("Unreadable package.json in %s", package_dir, exc_info=True)
        return None
    if not isinstance(data, dict):
        return None
    for field in _ENTRY_FIELDS:
        value = data.get(field)
        if isinstance(value, str) and value:
            target = package_dir / value
            if target.is_file():
                return target.resolve()
            for ext in extensions:
                with_ext = target.with_name(target.name + ext)
                if with_ext.is_file():
                    return with_ext.resolve()
    return None


def ancestor_module_dirs(
    start: Path, module_dirs: Sequence[str] = DEFAULT_MODULE_DIRS
) -> Iterator[Path]:
    """Yield existing module directories from *start* up to the filesystem root."""
    current = start.resolve()
    while True:
        for name in module_dirs:
            candidate = current / name
            if candidate.is_dir():
                yield candidate
        parent = current.parent
        if parent == current:
            break
        current = parent


def find_in_module_dirs(
    specifier: str,
    start: Path,
    *,
    module_dirs: Sequence[str] = DEFAULT_MODULE_DIRS,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> Path | None:
    """Look a bare specifier up in ancestor module directories (``node_modules``)."""
    for module_dir in ancestor_module_dirs(start, module_dirs):
        found = probe_file(module_dir / specifier, extensions)
        if found is not None:
            return found
    return None


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------


def read_module_file(path: Path) -> bytes:
    """Read a local module's bytes, wrapping OS errors in LoadError."""
    try:
        return path.read_bytes()
    except OSError as exc:
        raise LoadError(str(path), exc.strerror or str(exc)) from exc


def write_manifest(path: Path, payload: dict[str, object]) -> Path:
    """Write the build manifest as JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    return path
