"""SQLite panel store: engine and schema via SQLAlchemy Core."""

from hostctl.infrastructure.database.engine import create_db_engine, init_database
from hostctl.infrastructure.database.schema import (
    cron_jobs,
    database_users,
    databases,
    dns_records,
    domains,
    ftp_users,
    metadata,
    sites,
    users,
)

__all__ = [
    "create_db_engine",
    "cron_jobs",
    "database_users",
    "databases",
    "dns_records",
    "domains",
    "ftp_users",
    "init_database",
    "metadata",
    "sites",
    "users",
]
