"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, netbundle.toml only contains
overrides. A project with no config file builds ``index.js``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from netbundle.domain.jobs import default_concurrency
from netbundle.infrastructure.fetcher import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_USER_AGENT,
)
from netbundle.infrastructure.filesystem import DEFAULT_EXTENSIONS, DEFAULT_MODULE_DIRS


class FetchConfig(BaseModel):
    """[fetch] section."""

    model_config = {"frozen": True}

    max_concurrency: int = Field(default_factory=default_concurrency, ge=1)
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)
    retries: int = Field(default=3, ge=1)
    max_redirects: int = Field(default=DEFAULT_MAX_REDIRECTS, ge=0)
    user_agent: str = DEFAULT_USER_AGENT


class ResolveConfig(BaseModel):
    """[resolve] section."""

    model_config = {"frozen": True}

    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    module_dirs: tuple[str, ...] = DEFAULT_MODULE_DIRS
    externals: tuple[str, ...] = ()

    @field_validator("extensions")
    @classmethod
    def _dotted(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(ext if ext.startswith(".") else f".{ext}" for ext in value)


class BuildConfig(BaseModel):
    """[build] section."""

    model_config = {"frozen": True}

    entry_points: tuple[str, ...] = ("index.js",)
    outfile: str = "netbundle.manifest.json"


class NetbundleConfig(BaseModel):
    """Top-level netbundle.toml model."""

    model_config = {"frozen": True}

    fetch: FetchConfig = Field(default_factory=FetchConfig)
    resolve: ResolveConfig = Field(default_factory=ResolveConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
