"""Panel: the container wiring store, sandbox, and adapters.

Built once per process from :class:`HostSettings` and handed to every
service. Each gateway and adapter is constructed exactly once here; the
DNS backend is chosen from ``[dns] backend`` at construction time.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from hostctl.domain.types import DnsBackend
from hostctl.infrastructure.adapters.bind import BindAdapter
from hostctl.infrastructure.adapters.cron import CronAdapter
from hostctl.infrastructure.adapters.filesystem import SiteFilesystem
from hostctl.infrastructure.adapters.mysql import MysqlDatabaseAdapter
from hostctl.infrastructure.adapters.nginx import NginxAdapter
from hostctl.infrastructure.adapters.php_fpm import PhpFpmAdapter
from hostctl.infrastructure.adapters.powerdns import PowerDnsAdapter
from hostctl.infrastructure.adapters.pure_ftpd import PureFtpdAdapter
from hostctl.infrastructure.database.engine import init_database
from hostctl.infrastructure.locks import FileLocks
from hostctl.infrastructure.repositories.store import (
    CronJobRepository,
    DatabaseRepository,
    DatabaseUserRepository,
    DnsRecordRepository,
    DomainRepository,
    FtpUserRepository,
    SiteRepository,
    UserRepository,
)
from hostctl.infrastructure.sandbox import CommandSandbox

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from hostctl.config.settings import HostSettings
    from hostctl.infrastructure.adapters.contracts import (
        CronManager,
        DatabaseManager,
        DnsManager,
        FtpManager,
        PhpRuntimeManager,
        SiteFilesystemManager,
        WebServerManager,
    )


class Panel:
    """Owns every long-lived collaborator of the provisioning services.

    Tests build a Panel from settings pointing into a temp directory and
    may pass a prepared *sandbox*, *engine*, or adapter overrides.
    """

    def __init__(
        self,
        settings: HostSettings,
        *,
        sandbox: CommandSandbox | None = None,
        engine: Engine | None = None,
        database_manager: DatabaseManager | None = None,
        dns_manager: DnsManager | None = None,
    ) -> None:
        self._settings = settings
        self._engine: Engine = engine or init_database(settings.database_path)
        self.sandbox = sandbox or CommandSandbox.from_settings(settings)
        self.locks = FileLocks(settings.sandbox.lock_dir)

        # --- Store gateways ---
        self.users = UserRepository(self._engine)
        self.sites = SiteRepository(self._engine)
        self.databases = DatabaseRepository(self._engine)
        self.database_users = DatabaseUserRepository(self._engine)
        self.ftp_users = FtpUserRepository(self._engine)
        self.cron_jobs = CronJobRepository(self._engine)
        self.domains = DomainRepository(self._engine)
        self.dns_records = DnsRecordRepository(self._engine)

        # --- Adapters ---
        panel_cfg = settings.panel
        template_dir = panel_cfg.template_dir
        self.filesystem: SiteFilesystemManager = SiteFilesystem(
            self.sandbox,
            sites_root=panel_cfg.sites_root,
            owner=panel_cfg.system_user,
            group=panel_cfg.web_group,
            template_dir=template_dir,
        )
        self.web_server: WebServerManager = NginxAdapter(
            self.sandbox,
            settings.nginx,
            php_socket_dir=settings.php.socket_dir,
            template_dir=template_dir,
        )
        self.php: PhpRuntimeManager = PhpFpmAdapter(
            self.sandbox,
            settings.php,
            user=panel_cfg.system_user,
            group=panel_cfg.system_user,
            web_group=panel_cfg.web_group,
            template_dir=template_dir,
        )
        self.database_manager: DatabaseManager = database_manager or MysqlDatabaseAdapter(
            config=settings.mysql
        )
        self.dns: DnsManager = dns_manager or self._build_dns()
        self.ftp: FtpManager = PureFtpdAdapter(
            self.sandbox,
            system_user=panel_cfg.system_user,
            commit=settings.ftp.commit_database,
        )
        self.cron: CronManager = CronAdapter(
            self.sandbox, self.locks, system_user=panel_cfg.system_user
        )

    def _build_dns(self) -> DnsManager:
        settings = self._settings
        if settings.dns.backend == DnsBackend.POWERDNS:
            return PowerDnsAdapter(config=settings.powerdns, default_ttl=settings.dns.default_ttl)
        return BindAdapter(
            self.sandbox,
            settings.bind,
            self.locks,
            default_ttl=settings.dns.default_ttl,
            template_dir=settings.panel.template_dir,
        )

    @property
    def settings(self) -> HostSettings:
        return self._settings

    @property
    def engine(self) -> Engine:
        """The panel store engine."""
        return self._engine

    def close(self) -> None:
        self._engine.dispose()
