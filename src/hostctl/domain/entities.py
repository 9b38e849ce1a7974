"""Entity records for provisioned resources.

Entities are frozen after construction. A record gains its ``id`` only when
the store persists it, which returns a copy via ``model_copy``; nothing else
ever changes an entity in place.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from hostctl.domain.types import DatabaseEngine, DnsRecordType


class User(BaseModel):
    """Panel user owning every other resource."""

    model_config = {"frozen": True}

    id: int | None = None
    username: str
    email: str
    password_hash: str


class Site(BaseModel):
    model_config = {"frozen": True}

    id: int | None = None
    user_id: int
    domain: str
    document_root: str
    php_version: str = "8.2"
    ssl_enabled: bool = False


class PhpRuntime(BaseModel):
    """Installed PHP interpreter discovered on the host. Never persisted."""

    model_config = {"frozen": True}

    version: str
    binary: Path
    fpm_socket: Path


class Database(BaseModel):
    model_config = {"frozen": True}

    id: int | None = None
    user_id: int
    name: str
    type: DatabaseEngine = DatabaseEngine.MYSQL


class DatabaseUser(BaseModel):
    model_config = {"frozen": True}

    id: int | None = None
    database_id: int
    username: str
    host: str = "localhost"


class FtpUser(BaseModel):
    model_config = {"frozen": True}

    id: int | None = None
    user_id: int
    username: str
    home_directory: str
    enabled: bool = True


class CronJob(BaseModel):
    model_config = {"frozen": True}

    id: int | None = None
    user_id: int
    schedule: str
    command: str
    enabled: bool = True


class Domain(BaseModel):
    """DNS zone owned by a site."""

    model_config = {"frozen": True}

    id: int | None = None
    site_id: int
    name: str


class DnsRecord(BaseModel):
    model_config = {"frozen": True}

    id: int | None = None
    domain_id: int
    name: str
    type: DnsRecordType
    content: str
    ttl: int = 3600
    priority: int | None = None
