"""Nginx virtual hosts.

A vhost is written to ``sites-available``, symlinked into
``sites-enabled``, and the whole server configuration is checked with
``nginx -t`` before any reload. A vhost that fails the check is removed
again so a bad file never reaches a live reload.
"""

from __future__ import annotations

import logging
import posixpath
from typing import TYPE_CHECKING

from hostctl.domain.errors import OperationalError, ResourceExistsError
from hostctl.domain.naming import pool_socket_path, vhost_filename
from hostctl.infrastructure.adapters._helpers import require_ok
from hostctl.infrastructure.templates import render

if TYPE_CHECKING:
    from pathlib import Path

    from hostctl.config.models import NginxConfig
    from hostctl.domain.entities import Site
    from hostctl.infrastructure.sandbox import CommandResult, CommandSandbox

logger = logging.getLogger(__name__)


class NginxAdapter:
    """Web-server adapter for nginx."""

    def __init__(
        self,
        sandbox: CommandSandbox,
        config: NginxConfig,
        *,
        php_socket_dir: str,
        template_dir: Path | None = None,
    ) -> None:
        self._sandbox = sandbox
        self._config = config
        self._php_socket_dir = php_socket_dir
        self._template_dir = template_dir

    def vhost_path(self, site: Site) -> str:
        return posixpath.join(self._config.sites_available, vhost_filename(site.domain))

    def enabled_path(self, site: Site) -> str:
        return posixpath.join(self._config.sites_enabled, vhost_filename(site.domain))

    def render_vhost(self, site: Site) -> str:
        return render(
            "nginx",
            "vhost.conf.j2",
            override_dir=self._template_dir,
            domain=site.domain,
            document_root=site.document_root,
            php_socket=pool_socket_path(self._php_socket_dir, site.php_version, site.domain),
            ssl_enabled=site.ssl_enabled,
            ssl_certificate=posixpath.join(self._config.ssl_certificate_dir, f"{site.domain}.crt"),
            ssl_certificate_key=posixpath.join(self._config.ssl_key_dir, f"{site.domain}.key"),
        )

    def create_site(self, site: Site) -> bool:
        """Install and enable a new vhost; an existing file or link is never overwritten."""
        for path in (self.vhost_path(site), self.enabled_path(site)):
            if self._sandbox.run("test", ["-e", path]).ok:
                raise ResourceExistsError(f"Nginx configuration already exists: {path}")
        return self._install(site)

    def update_site(self, site: Site) -> bool:
        return self._install(site)

    def _install(self, site: Site) -> bool:
        vhost = self.vhost_path(site)
        require_ok(
            self._sandbox.write_file(vhost, self.render_vhost(site), mode="644"),
            "Failed to write Nginx configuration",
        )
        link = self._sandbox.run_privileged("ln", ["-sf", vhost, self.enabled_path(site)])
        if not link.ok:
            self._remove_files(site)
            require_ok(link, "Failed to enable Nginx site")

        check = self._sandbox.run_privileged("nginx", ["-t"])
        if not check.ok:
            self._remove_files(site)
            raise OperationalError(
                f"Invalid Nginx configuration: {check.output.strip()}",
                detail={"exit_code": check.exit_code, "timed_out": check.timed_out},
            )
        require_ok(self._reload(), "Failed to reload Nginx")
        return True

    def delete_site(self, site: Site) -> bool:
        self._remove_files(site, strict=True)
        require_ok(self._reload(), "Failed to reload Nginx")
        return True

    def reload(self) -> bool:
        return self._reload().ok

    def _reload(self) -> CommandResult:
        return self._sandbox.run_privileged("systemctl", ["reload", self._config.service])

    def _remove_files(self, site: Site, *, strict: bool = False) -> None:
        """Remove the enabled link and the vhost file (``rm -f`` is idempotent)."""
        for path in (self.enabled_path(site), self.vhost_path(site)):
            result = self._sandbox.run_privileged("rm", ["-f", path])
            if strict:
                require_ok(result, f"Failed to remove {path}")
            elif not result.ok:
                logger.warning("Could not remove %s: %s", path, result.output.strip())
