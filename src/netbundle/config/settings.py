"""One settings object per CLI invocation.

Sources, strongest first: CLI flags (init kwargs), ``NETBUNDLE_*``
environment variables (``__`` separates nested sections, e.g.
``NETBUNDLE_FETCH__RETRIES=5``), the discovered ``netbundle.toml``, and the
defaults baked into the section models.
"""

from __future__ import annotations

import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from netbundle.config.discovery import find_config, read_toml
from netbundle.config.models import BuildConfig, FetchConfig, ResolveConfig

# TOML file for the settings object currently being constructed.
_active_toml: ContextVar[Path | None] = ContextVar("netbundle_active_toml", default=None)


class NetbundleSettings(BaseSettings):
    """Frozen settings stored on the AppContext.

    Attributes:
        project_root: Directory entry points and the outfile are relative to
            (the directory holding ``netbundle.toml``, else the CWD).
        config_path: The TOML file in use, if any.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        env_prefix="NETBUNDLE_",
        env_nested_delimiter="__",
    )

    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    sync: bool = False

    fetch: FetchConfig = Field(default_factory=FetchConfig)
    resolve: ResolveConfig = Field(default_factory=ResolveConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml = TomlConfigSettingsSource(settings_cls, toml_file=_active_toml.get())
        return init_settings, env_settings, toml

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        project_root: Path | None = None,
        **flags: Any,
    ) -> NetbundleSettings:
        """Build settings for a command invocation.

        Raises:
            click.ClickException: *config_path* does not exist, or the TOML
                file in use does not parse.
        """
        toml_path = _locate_toml(config_path, project_root)
        if project_root is None:
            project_root = toml_path.parent if toml_path else Path.cwd()

        token = _active_toml.set(toml_path)
        try:
            return cls(project_root=project_root.resolve(), config_path=toml_path, **flags)
        finally:
            _active_toml.reset(token)

    def with_overrides(self, **sections: dict[str, Any]) -> NetbundleSettings:
        """Copy with command options merged into the named sections.

        ``None`` values mean "option not given" and keep the configured value.
        """
        update: dict[str, Any] = {}
        for section, values in sections.items():
            given = {key: value for key, value in values.items() if value is not None}
            if given:
                update[section] = getattr(self, section).model_copy(update=given)
        if not update:
            return self
        return self.model_copy(update=update)


def _locate_toml(config_path: str | None, project_root: Path | None) -> Path | None:
    if config_path:
        path = Path(config_path)
        if not path.is_file():
            msg = f"Config file not found: {config_path}"
            raise click.ClickException(msg)
    else:
        path = find_config(project_root)
        if path is None:
            return None
    try:
        read_toml(path)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc
    return path.resolve()
