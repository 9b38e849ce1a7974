"""Site directories on disk: owner base directory, document root, landing page.

Layout under the sites root::

    <sites_root>/<username>/                   owner directory
    <sites_root>/<username>/<domain>/          site directory
    <sites_root>/<username>/<domain>/public_html   document root
    <sites_root>/<username>/<domain>/tmp       PHP upload/session dir
"""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING

from hostctl.domain.errors import OperationalError, ResourceExistsError
from hostctl.infrastructure.adapters._helpers import require_ok
from hostctl.infrastructure.templates import render

if TYPE_CHECKING:
    from pathlib import Path

    from hostctl.domain.entities import Site
    from hostctl.infrastructure.sandbox import CommandSandbox


def site_directory(site: Site) -> str:
    return posixpath.dirname(posixpath.normpath(site.document_root))


def site_tmp_directory(site: Site) -> str:
    return posixpath.join(site_directory(site), "tmp")


class SiteFilesystem:
    """Creates and removes site directories through the sandbox."""

    def __init__(
        self,
        sandbox: CommandSandbox,
        *,
        sites_root: str,
        owner: str,
        group: str,
        template_dir: Path | None = None,
    ) -> None:
        self._sandbox = sandbox
        self._sites_root = posixpath.normpath(sites_root)
        self._owner = f"{owner}:{group}"
        self._template_dir = template_dir

    def ensure_owner_directory(self, path: str) -> bool:
        """Create the owner's base directory on first use; no-op afterwards."""
        self._guard(path)
        if self._sandbox.run("test", ["-d", path]).ok:
            return True
        self._privileged("mkdir", ["-p", path], "Failed to create owner directory")
        self._privileged("chown", [self._owner, path], "Failed to chown owner directory")
        self._privileged("chmod", ["751", path], "Failed to chmod owner directory")
        return True

    def create_document_root(self, site: Site) -> bool:
        site_dir = site_directory(site)
        self._guard(site_dir)
        if self._sandbox.run("test", ["-e", site_dir]).ok:
            raise ResourceExistsError(f"Site directory already exists: {site_dir}")
        self._privileged(
            "mkdir",
            ["-p", site.document_root, site_tmp_directory(site)],
            "Failed to create document root",
        )
        self._privileged("chown", ["-R", self._owner, site_dir], "Failed to chown site directory")
        self._privileged("chmod", ["750", site_dir], "Failed to chmod site directory")
        return True

    def remove_document_root(self, site: Site) -> bool:
        """Remove the whole site directory (document root and tmp)."""
        site_dir = site_directory(site)
        self._guard(site_dir)
        self._privileged("rm", ["-rf", site_dir], "Failed to remove site directory")
        return True

    def write_index(self, site: Site) -> bool:
        """Install the default landing page into the document root."""
        content = render("site", "index.php.j2", override_dir=self._template_dir, site=site)
        path = posixpath.join(site.document_root, "index.php")
        require_ok(
            self._sandbox.write_file(path, content, mode="644", owner=self._owner),
            "Failed to write index file",
        )
        return True

    def _privileged(self, command: str, args: list[str], action: str) -> None:
        require_ok(self._sandbox.run_privileged(command, args), action)

    def _guard(self, path: str) -> None:
        """Refuse any path outside the sites root (or the root itself)."""
        normalized = posixpath.normpath(path)
        if (
            not posixpath.isabs(normalized)
            or normalized == self._sites_root
            or posixpath.commonpath([self._sites_root, normalized]) != self._sites_root
        ):
            raise OperationalError(
                f"Refusing to touch {path!r}: outside of {self._sites_root}",
                detail={"path": path},
            )
