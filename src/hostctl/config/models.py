"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, ``hostctl.toml`` only contains
overrides. A stock Debian/Ubuntu host needs little more than
``[mysql] password`` and ``[panel] system_user``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, SecretStr

from hostctl.domain.types import DnsBackend

# --- hostctl.toml sections ---


class PanelConfig(BaseModel):
    """[panel] section."""

    model_config = {"frozen": True}

    data_dir: Path = Path("/var/lib/hostctl")
    sites_root: str = "/srv/hostctl/sites"
    system_user: str = "hostctl"
    web_group: str = "www-data"
    template_dir: Path | None = None


class SandboxConfig(BaseModel):
    """[sandbox] section."""

    model_config = {"frozen": True}

    sudo: list[str] = Field(default_factory=lambda: ["sudo", "-n"])
    timeout_seconds: float = 30.0
    audit_log: Path | None = None
    temp_dir: Path | None = None
    lock_dir: Path | None = None


class NginxConfig(BaseModel):
    """[nginx] section."""

    model_config = {"frozen": True}

    sites_available: str = "/etc/nginx/sites-available"
    sites_enabled: str = "/etc/nginx/sites-enabled"
    ssl_certificate_dir: str = "/etc/ssl/certs"
    ssl_key_dir: str = "/etc/ssl/private"
    service: str = "nginx"


class PhpConfig(BaseModel):
    """[php] section."""

    model_config = {"frozen": True}

    versions: list[str] = Field(default_factory=lambda: ["7.4", "8.0", "8.1", "8.2", "8.3"])
    default_version: str = "8.2"
    binary_template: str = "/usr/bin/php{version}"
    pool_dir_template: str = "/etc/php/{version}/fpm/pool.d"
    socket_dir: str = "/var/run/php"
    pm_max_children: int = 5
    pm_start_servers: int = 2
    pm_min_spare_servers: int = 1
    pm_max_spare_servers: int = 3


class MysqlConfig(BaseModel):
    """[mysql] section: administrative connection."""

    model_config = {"frozen": True}

    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: SecretStr = SecretStr("")
    connect_timeout: int = 10


class DnsConfig(BaseModel):
    """[dns] section."""

    model_config = {"frozen": True}

    backend: DnsBackend = DnsBackend.BIND
    default_ttl: int = 3600


class BindConfig(BaseModel):
    """[bind] section."""

    model_config = {"frozen": True}

    zones_dir: str = "/etc/bind/zones"
    include_config: str = "/etc/bind/named.conf.local"
    service: str = "bind9"
    zone_owner: str = "bind:bind"
    config_owner: str = "root:bind"


class PowerDnsConfig(BaseModel):
    """[powerdns] section: SQL backend of a PowerDNS authoritative server."""

    model_config = {"frozen": True}

    host: str = "localhost"
    port: int = 3306
    database: str = "powerdns"
    user: str = "powerdns"
    password: SecretStr = SecretStr("")
    account: str = "hostctl"
    connect_timeout: int = 10


class FtpConfig(BaseModel):
    """[ftp] section."""

    model_config = {"frozen": True}

    # Rebuild the PureDB after each change (pure-pw -m).
    commit_database: bool = True
