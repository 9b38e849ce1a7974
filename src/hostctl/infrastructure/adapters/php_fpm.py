"""PHP-FPM runtimes and per-site pools."""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import TYPE_CHECKING

from hostctl.domain.entities import PhpRuntime
from hostctl.domain.errors import ResourceExistsError
from hostctl.domain.naming import fpm_service_name, pool_filename, pool_name, pool_socket_path
from hostctl.infrastructure.adapters._helpers import require_ok
from hostctl.infrastructure.adapters.filesystem import site_tmp_directory
from hostctl.infrastructure.templates import render

if TYPE_CHECKING:
    from hostctl.config.models import PhpConfig
    from hostctl.domain.entities import Site
    from hostctl.infrastructure.sandbox import CommandSandbox


class PhpFpmAdapter:
    """PHP-runtime adapter for PHP-FPM.

    Every pool runs as the panel's shared system user; the listen socket is
    owned by the web server group so nginx can connect.
    """

    def __init__(
        self,
        sandbox: CommandSandbox,
        config: PhpConfig,
        *,
        user: str,
        group: str,
        web_group: str,
        template_dir: Path | None = None,
    ) -> None:
        self._sandbox = sandbox
        self._config = config
        self._user = user
        self._group = group
        self._web_group = web_group
        self._template_dir = template_dir

    def runtime_for(self, version: str) -> PhpRuntime:
        return PhpRuntime(
            version=version,
            binary=Path(self._config.binary_template.format(version=version)),
            fpm_socket=Path(self._config.socket_dir) / f"{fpm_service_name(version)}.sock",
        )

    def list_available(self) -> list[PhpRuntime]:
        """Runtimes whose interpreter binary exists, in configured order."""
        runtimes = (self.runtime_for(v) for v in self._config.versions)
        return [rt for rt in runtimes if rt.binary.is_file()]

    def pool_path(self, site: Site) -> str:
        pool_dir = self._config.pool_dir_template.format(version=site.php_version)
        return posixpath.join(pool_dir, pool_filename(site.domain))

    def render_pool(self, site: Site, runtime: PhpRuntime) -> str:
        cfg = self._config
        return render(
            "php",
            "pool.conf.j2",
            override_dir=self._template_dir,
            domain=site.domain,
            pool_name=pool_name(site.domain),
            user=self._user,
            group=self._group,
            socket=pool_socket_path(cfg.socket_dir, runtime.version, site.domain),
            listen_owner=self._web_group,
            listen_group=self._web_group,
            pm={
                "max_children": cfg.pm_max_children,
                "start_servers": cfg.pm_start_servers,
                "min_spare_servers": cfg.pm_min_spare_servers,
                "max_spare_servers": cfg.pm_max_spare_servers,
            },
            document_root=site.document_root,
            tmp_dir=site_tmp_directory(site),
        )

    def create_pool(self, site: Site, runtime: PhpRuntime) -> bool:
        site = site.model_copy(update={"php_version": runtime.version})
        path = self.pool_path(site)
        if self._sandbox.run("test", ["-e", path]).ok:
            raise ResourceExistsError(f"PHP-FPM pool already exists: {path}")
        content = self.render_pool(site, runtime)
        require_ok(
            self._sandbox.write_file(path, content, mode="644"),
            "Failed to write PHP-FPM pool configuration",
        )
        self._reload(runtime.version)
        return True

    def delete_pool(self, site: Site) -> bool:
        require_ok(
            self._sandbox.run_privileged("rm", ["-f", self.pool_path(site)]),
            "Failed to remove PHP-FPM pool configuration",
        )
        self._reload(site.php_version)
        return True

    def _reload(self, version: str) -> None:
        service = fpm_service_name(version)
        require_ok(
            self._sandbox.run_privileged("systemctl", ["reload", service]),
            f"Failed to reload {service}",
        )
