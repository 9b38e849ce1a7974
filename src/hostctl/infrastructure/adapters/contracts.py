"""Capability interfaces implemented by the resource adapters.

Services depend on these protocols, never on a concrete backend, so a
variant (BIND or PowerDNS, say) is chosen once when the panel is wired.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from hostctl.domain.entities import (
        CronJob,
        Database,
        DatabaseUser,
        DnsRecord,
        Domain,
        FtpUser,
        PhpRuntime,
        Site,
    )


class WebServerManager(Protocol):
    def create_site(self, site: Site) -> bool: ...

    def update_site(self, site: Site) -> bool: ...

    def delete_site(self, site: Site) -> bool: ...

    def reload(self) -> bool: ...


class PhpRuntimeManager(Protocol):
    def list_available(self) -> list[PhpRuntime]: ...

    def runtime_for(self, version: str) -> PhpRuntime: ...

    def create_pool(self, site: Site, runtime: PhpRuntime) -> bool: ...

    def delete_pool(self, site: Site) -> bool: ...


class DatabaseManager(Protocol):
    def create_database(self, database: Database) -> bool: ...

    def delete_database(self, database: Database) -> bool: ...

    def create_user(self, user: DatabaseUser, password: str) -> bool: ...

    def delete_user(self, user: DatabaseUser) -> bool: ...

    def grant_privileges(
        self, user: DatabaseUser, database: Database, privileges: list[str]
    ) -> bool: ...


class DnsManager(Protocol):
    def create_zone(self, domain: Domain) -> bool: ...

    def delete_zone(self, domain: Domain) -> bool: ...

    def add_record(self, domain: Domain, record: DnsRecord) -> bool: ...

    def update_record(self, domain: Domain, old: DnsRecord, new: DnsRecord) -> bool: ...

    def delete_record(self, domain: Domain, record: DnsRecord) -> bool: ...


class FtpManager(Protocol):
    def create_user(self, user: FtpUser, password: str) -> bool: ...

    def update_user(self, user: FtpUser) -> bool: ...

    def delete_user(self, user: FtpUser) -> bool: ...

    def change_password(self, user: FtpUser, password: str) -> bool: ...


class CronManager(Protocol):
    def create_job(self, owner: str, job: CronJob) -> bool: ...

    def update_job(self, owner: str, job: CronJob) -> bool: ...

    def delete_job(self, job: CronJob) -> bool: ...

    def list_jobs(self, owner: str | None = None) -> list[str]: ...


class SiteFilesystemManager(Protocol):
    def ensure_owner_directory(self, path: str) -> bool: ...

    def create_document_root(self, site: Site) -> bool: ...

    def remove_document_root(self, site: Site) -> bool: ...

    def write_index(self, site: Site) -> bool: ...
