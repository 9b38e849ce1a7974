"""Read-only views over the panel store and installed runtimes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from hostctl.domain.entities import (
        CronJob,
        Database,
        DnsRecord,
        Domain,
        FtpUser,
        PhpRuntime,
        Site,
        User,
    )
    from hostctl.infrastructure.panel import Panel


class InventoryService:
    """Listings used by the ``list`` commands."""

    def __init__(self, panel: Panel) -> None:
        self._panel = panel

    @classmethod
    def from_panel(cls, panel: Panel) -> InventoryService:
        return cls(panel)

    def users(self) -> list[User]:
        return self._panel.users.list_by()

    def sites(self, user_id: int | None = None) -> list[Site]:
        return self._panel.sites.list_by(**_owner(user_id))

    def databases(self, user_id: int | None = None) -> list[Database]:
        return self._panel.databases.list_by(**_owner(user_id))

    def database_users(self, database_id: int) -> list[str]:
        users = self._panel.database_users.list_by(database_id=database_id)
        return [f"{u.username}@{u.host}" for u in users]

    def ftp_users(self, user_id: int | None = None) -> list[FtpUser]:
        return self._panel.ftp_users.list_by(**_owner(user_id))

    def cron_jobs(self, user_id: int | None = None) -> list[CronJob]:
        return self._panel.cron_jobs.list_by(**_owner(user_id))

    def zones(self, site_id: int | None = None) -> list[Domain]:
        filters = {} if site_id is None else {"site_id": site_id}
        return self._panel.domains.list_by(**filters)

    def records(self, domain_id: int) -> list[DnsRecord]:
        return self._panel.dns_records.list_by(domain_id=domain_id)

    def php_runtimes(self) -> list[PhpRuntime]:
        return self._panel.php.list_available()


def _owner(user_id: int | None) -> dict[str, Any]:
    return {} if user_id is None else {"user_id": user_id}
