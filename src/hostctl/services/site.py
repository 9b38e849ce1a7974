"""Site provisioning and teardown.

Pipeline: VALIDATE → CHECK DOMAIN → RESOLVE OWNER → PERSIST → OWNER DIR →
DOCUMENT ROOT → PHP-FPM POOL → VHOST → INDEX FILE
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hostctl.domain.entities import Site
from hostctl.domain.errors import ConflictError, NotFoundError
from hostctl.domain.naming import document_root, owner_directory
from hostctl.domain.validation import validate_domain, validate_php_version
from hostctl.services.base import BaseService

if TYPE_CHECKING:
    from hostctl.infrastructure.adapters.contracts import (
        PhpRuntimeManager,
        SiteFilesystemManager,
        WebServerManager,
    )
    from hostctl.infrastructure.panel import Panel
    from hostctl.infrastructure.repositories.store import (
        DomainRepository,
        SiteRepository,
        UserRepository,
    )

logger = logging.getLogger(__name__)


class CreateSiteService(BaseService):
    """Creates a site: directories, PHP-FPM pool, nginx vhost, landing page."""

    def __init__(
        self,
        sites: SiteRepository,
        users: UserRepository,
        filesystem: SiteFilesystemManager,
        php: PhpRuntimeManager,
        web_server: WebServerManager,
        *,
        sites_root: str,
        php_versions: list[str],
    ) -> None:
        self._sites = sites
        self._users = users
        self._filesystem = filesystem
        self._php = php
        self._web_server = web_server
        self._sites_root = sites_root
        self._php_versions = php_versions

    @classmethod
    def from_panel(cls, panel: Panel) -> CreateSiteService:
        return cls(
            panel.sites,
            panel.users,
            panel.filesystem,
            panel.php,
            panel.web_server,
            sites_root=panel.settings.panel.sites_root,
            php_versions=panel.settings.php.versions,
        )

    def execute(
        self,
        user_id: int,
        domain: str,
        php_version: str = "8.2",
        ssl_enabled: bool = False,
    ) -> Site:
        validate_domain(domain)
        validate_php_version(php_version, self._php_versions)

        if self._sites.find_by_unique_key(domain) is not None:
            raise ConflictError(f"Site with domain '{domain}' already exists")

        user = self._users.find(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")

        logger.info("Provisioning site %s for %s", domain, user.username)
        with self._provisioning("Failed to create site infrastructure") as txn:
            site = txn.persist(
                self._sites,
                Site(
                    user_id=user_id,
                    domain=domain,
                    document_root=document_root(self._sites_root, user.username, domain),
                    php_version=php_version,
                    ssl_enabled=ssl_enabled,
                ),
            )
            owner_dir = owner_directory(self._sites_root, user.username)
            txn.step(
                "create owner directory",
                lambda: self._filesystem.ensure_owner_directory(owner_dir),
            )
            txn.step(
                "create document root",
                lambda: self._filesystem.create_document_root(site),
                undo=lambda: self._filesystem.remove_document_root(site),
            )
            runtime = self._php.runtime_for(php_version)
            txn.step(
                "create PHP-FPM pool",
                lambda: self._php.create_pool(site, runtime),
                undo=lambda: self._php.delete_pool(site),
            )
            txn.step(
                "create vhost",
                lambda: self._web_server.create_site(site),
                undo=lambda: self._web_server.delete_site(site),
            )
            txn.step("write index file", lambda: self._filesystem.write_index(site))
        return site


class DeleteSiteService(BaseService):
    """Tears a site down in reverse order of creation.

    Refuses while DNS zones still belong to the site. If a step fails, the
    store record is kept so the teardown can be retried.
    """

    def __init__(
        self,
        sites: SiteRepository,
        domains: DomainRepository,
        filesystem: SiteFilesystemManager,
        php: PhpRuntimeManager,
        web_server: WebServerManager,
    ) -> None:
        self._sites = sites
        self._domains = domains
        self._filesystem = filesystem
        self._php = php
        self._web_server = web_server

    @classmethod
    def from_panel(cls, panel: Panel) -> DeleteSiteService:
        return cls(panel.sites, panel.domains, panel.filesystem, panel.php, panel.web_server)

    def execute(self, site_id: int) -> Site:
        site = self._sites.find(site_id)
        if site is None:
            raise NotFoundError(f"Site {site_id} not found")
        zones = self._domains.count_for_site(site_id)
        if zones:
            raise ConflictError(
                f"Site '{site.domain}' still has {zones} DNS zone(s); delete them first",
                detail={"zones": zones},
            )

        with self._provisioning("Failed to delete site infrastructure") as txn:
            txn.step("delete vhost", lambda: self._web_server.delete_site(site))
            txn.step("delete PHP-FPM pool", lambda: self._php.delete_pool(site))
            txn.step("remove document root", lambda: self._filesystem.remove_document_root(site))
            txn.step("delete site record", lambda: self._sites.delete(site_id))
        return site
