"""Config file discovery and loading.

``netbundle.toml`` is looked up from the working directory towards the
filesystem root, the way git finds ``.git/``. ``NETBUNDLE_CONFIG`` pins an
explicit file and disables the walk-up.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from netbundle.config.models import NetbundleConfig

CONFIG_FILENAME = "netbundle.toml"
CONFIG_ENV_VAR = "NETBUNDLE_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the nearest netbundle.toml at or above *start*, or None.

    A set ``NETBUNDLE_CONFIG`` wins; if it points at a missing file the
    result is None rather than a walk-up match.
    """
    pinned = os.environ.get(CONFIG_ENV_VAR)
    if pinned:
        pinned_path = Path(pinned)
        return pinned_path if pinned_path.is_file() else None

    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path* as TOML. Raises ``tomllib.TOMLDecodeError`` on bad syntax."""
    return tomllib.loads(path.read_text(encoding="utf-8"))


def load_config(path: Path | None = None, cwd: Path | None = None) -> NetbundleConfig:
    """Validate the discovered (or given) config file; defaults when there is none."""
    config_path = path or find_config(cwd)
    if config_path is None:
        return NetbundleConfig()
    return NetbundleConfig.model_validate(read_toml(config_path))
