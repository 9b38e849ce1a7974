"""SQLAlchemy Core table definitions for the panel store.

Business keys carry UNIQUE constraints so two concurrent requests for the
same domain, database, or FTP username cannot both persist. Child rows
cascade with their owners.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    func,
)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", Text, nullable=False, unique=True),
    Column("email", Text, nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("created_at", Text, server_default=func.current_timestamp()),
)

sites = Table(
    "sites",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("domain", Text, nullable=False, unique=True),
    Column("document_root", Text, nullable=False),
    Column("php_version", Text, nullable=False, server_default="8.2"),
    Column("ssl_enabled", Integer, nullable=False, server_default="0"),
    Column("created_at", Text, server_default=func.current_timestamp()),
)

databases = Table(
    "databases",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("name", Text, nullable=False, unique=True),
    Column("type", Text, nullable=False, server_default="mysql"),
    Column("created_at", Text, server_default=func.current_timestamp()),
)

database_users = Table(
    "database_users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "database_id",
        Integer,
        ForeignKey("databases.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("username", Text, nullable=False),
    Column("host", Text, nullable=False, server_default="localhost"),
    Column("created_at", Text, server_default=func.current_timestamp()),
    UniqueConstraint("username", "host"),
)

ftp_users = Table(
    "ftp_users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("username", Text, nullable=False, unique=True),
    Column("home_directory", Text, nullable=False),
    Column("enabled", Integer, nullable=False, server_default="1"),
    Column("created_at", Text, server_default=func.current_timestamp()),
)

cron_jobs = Table(
    "cron_jobs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("schedule", Text, nullable=False),
    Column("command", Text, nullable=False),
    Column("enabled", Integer, nullable=False, server_default="1"),
    Column("created_at", Text, server_default=func.current_timestamp()),
)

domains = Table(
    "domains",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("site_id", Integer, ForeignKey("sites.id", ondelete="CASCADE"), nullable=False),
    Column("name", Text, nullable=False, unique=True),
    Column("created_at", Text, server_default=func.current_timestamp()),
)

dns_records = Table(
    "dns_records",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "domain_id",
        Integer,
        ForeignKey("domains.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("name", Text, nullable=False),
    Column("type", Text, nullable=False),
    Column("content", Text, nullable=False),
    Column("ttl", Integer, nullable=False, server_default="3600"),
    Column("priority", Integer),
    Column("created_at", Text, server_default=func.current_timestamp()),
)
