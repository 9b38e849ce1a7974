"""Store gateways, one per entity."""

from __future__ import annotations

from sqlalchemy import select

from hostctl.domain.entities import (
    CronJob,
    Database,
    DatabaseUser,
    DnsRecord,
    Domain,
    FtpUser,
    Site,
    User,
)
from hostctl.infrastructure.database.schema import (
    cron_jobs,
    database_users,
    databases,
    dns_records,
    domains,
    ftp_users,
    sites,
    users,
)
from hostctl.infrastructure.repositories.base import TableRepository


class UserRepository(TableRepository[User]):
    table = users
    entity = User
    unique_key = "username"

    def find_by_email(self, email: str) -> User | None:
        return self._first(users.c.email == email)


class SiteRepository(TableRepository[Site]):
    table = sites
    entity = Site
    unique_key = "domain"


class DatabaseRepository(TableRepository[Database]):
    table = databases
    entity = Database
    unique_key = "name"


class DatabaseUserRepository(TableRepository[DatabaseUser]):
    table = database_users
    entity = DatabaseUser
    unique_key = "username"

    def find_by_unique_key(self, key: str, host: str = "localhost") -> DatabaseUser | None:
        return self._first((database_users.c.username == key) & (database_users.c.host == host))


class FtpUserRepository(TableRepository[FtpUser]):
    table = ftp_users
    entity = FtpUser
    unique_key = "username"


class CronJobRepository(TableRepository[CronJob]):
    table = cron_jobs
    entity = CronJob


class DomainRepository(TableRepository[Domain]):
    table = domains
    entity = Domain
    unique_key = "name"

    def count_for_site(self, site_id: int) -> int:
        with self._engine.connect() as conn:
            rows = conn.execute(select(domains.c.id).where(domains.c.site_id == site_id)).all()
        return len(rows)


class DnsRecordRepository(TableRepository[DnsRecord]):
    table = dns_records
    entity = DnsRecord
