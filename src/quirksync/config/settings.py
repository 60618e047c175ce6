"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``QUIRKSYNC_*`` prefix (``QUIRKSYNC_WRITER__USER`` etc.)
  3. Writer env   — ``FX_REMOTE_SETTINGS_WRITER_{USER,PASS,SERVER}``
  4. TOML file    — ``quirksync.toml`` discovered via walk-up
  5. Code defaults — baked into the section models

The resulting object is built once by the CLI root and handed to the
runner explicitly; nothing else reads the environment.
"""

from __future__ import annotations

import os
import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from quirksync.config.discovery import find_config
from quirksync.config.models import DestinationConfig, SourceConfig, WriterCredentials

WRITER_ENV_VARS: dict[str, str] = {
    "user": "FX_REMOTE_SETTINGS_WRITER_USER",
    "password": "FX_REMOTE_SETTINGS_WRITER_PASS",
    "server": "FX_REMOTE_SETTINGS_WRITER_SERVER",
}


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``quirksync.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            try:
                self._data = tomllib.loads(toml_path.read_text(encoding="utf-8"))
            except tomllib.TOMLDecodeError as exc:
                import click

                raise click.ClickException(f"Invalid TOML in {toml_path}: {exc}") from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


class WriterEnvSource(PydanticBaseSettingsSource):
    """Map the deployment's ``FX_REMOTE_SETTINGS_WRITER_*`` secrets onto ``[writer]``."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        values = self()
        return values.get(field_name), field_name, field_name in values

    def __call__(self) -> dict[str, Any]:
        writer = {
            key: os.environ[env_name]
            for key, env_name in WRITER_ENV_VARS.items()
            if env_name in os.environ
        }
        return {"writer": writer} if writer else {}


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class SyncSettings(BaseSettings):
    """Everything one sync run needs, frozen after construction.

    Attributes:
        config_path: The TOML file that contributed values, if any.
        source: Upstream feed URLs.
        destination: Bucket and collection ids on the Remote Settings server.
        writer: Writer credentials and server address.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "QUIRKSYNC_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    source: SourceConfig = Field(default_factory=SourceConfig)
    destination: DestinationConfig = Field(default_factory=DestinationConfig)
    writer: WriterCredentials = Field(default_factory=WriterCredentials)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the writer env vars and the TOML file below ``QUIRKSYNC_*``."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            WriterEnvSource(settings_cls),
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        search_root: Path | None = None,
        **cli_flags: Any,
    ) -> SyncSettings:
        """Construct settings from a CLI invocation.

        An explicit *config_path* that does not exist is ignored, matching
        the behavior of a missing discovered file.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(search_root)

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **cli_flags)
        finally:
            _tls.toml_path = None
