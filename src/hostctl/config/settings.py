"""Unified settings: CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs (CLI flags passed by Click)
  2. Env vars with the ``HOSTCTL_`` prefix, ``__`` for nesting
     (``HOSTCTL_MYSQL__PASSWORD``)
  3. ``hostctl.toml`` discovered via walk-up
  4. Code defaults baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from hostctl.config.discovery import find_config
from hostctl.config.models import (
    BindConfig,
    DnsConfig,
    FtpConfig,
    MysqlConfig,
    NginxConfig,
    PanelConfig,
    PhpConfig,
    PowerDnsConfig,
    SandboxConfig,
)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``hostctl.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                import click

                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class HostSettings(BaseSettings):
    """Settings for the whole panel, frozen after construction.

    Attributes:
        config_path: The TOML file that was loaded, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "HOSTCTL_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    panel: PanelConfig = Field(default_factory=PanelConfig)
    sandbox: SandboxConfig = Field(default_factory=SandboxConfig)
    nginx: NginxConfig = Field(default_factory=NginxConfig)
    php: PhpConfig = Field(default_factory=PhpConfig)
    mysql: MysqlConfig = Field(default_factory=MysqlConfig)
    dns: DnsConfig = Field(default_factory=DnsConfig)
    bind: BindConfig = Field(default_factory=BindConfig)
    powerdns: PowerDnsConfig = Field(default_factory=PowerDnsConfig)
    ftp: FtpConfig = Field(default_factory=FtpConfig)

    @property
    def database_path(self) -> Path:
        """SQLite store location inside the panel data directory."""
        return self.panel.data_dir / "hostctl.db"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        search_from: Path | None = None,
        **cli_flags: Any,
    ) -> HostSettings:
        """Construct settings from a CLI invocation.

        Uses the explicit *config_path* when given, otherwise discovers
        ``hostctl.toml`` by walking up from *search_from*. Remaining
        keyword arguments override everything else.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if not p.is_file():
                import click

                raise click.ClickException(f"Config file not found: {config_path}")
            toml_path = p
        else:
            toml_path = find_config(search_from)

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **cli_flags)
        finally:
            _tls.toml_path = None
