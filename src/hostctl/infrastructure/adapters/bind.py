"""BIND zone-file DNS backend.

Zone files and the include config are edited read-modify-write under a
per-file lock. Every new version of a zone is checked with
``named-checkzone`` (and the config with ``named-checkconf``) on a private
temp copy before it is installed, and the daemon is reloaded afterwards.
"""

from __future__ import annotations

import logging
import posixpath
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

from hostctl.domain import zonefile
from hostctl.domain.errors import OperationalError, ResourceExistsError
from hostctl.domain.naming import zone_filename
from hostctl.infrastructure.adapters._helpers import require_ok
from hostctl.infrastructure.templates import render

if TYPE_CHECKING:
    from collections.abc import Callable

    from hostctl.config.models import BindConfig
    from hostctl.domain.entities import DnsRecord, Domain
    from hostctl.infrastructure.locks import FileLocks
    from hostctl.infrastructure.sandbox import CommandSandbox

logger = logging.getLogger(__name__)


class BindAdapter:
    """DNS adapter writing BIND zone files."""

    def __init__(
        self,
        sandbox: CommandSandbox,
        config: BindConfig,
        locks: FileLocks,
        *,
        default_ttl: int = 3600,
        template_dir: Path | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._sandbox = sandbox
        self._config = config
        self._locks = locks
        self._default_ttl = default_ttl
        self._template_dir = template_dir
        self._today = today

    def zone_path(self, domain: str) -> str:
        return posixpath.join(self._config.zones_dir, zone_filename(domain))

    # ------------------------------------------------------------------
    # Zones
    # ------------------------------------------------------------------

    def create_zone(self, domain: Domain) -> bool:
        """Install a new zone file and its stanza.

        A zone file or stanza already on disk belongs to someone else and is
        reported as :class:`ResourceExistsError` before anything is written.
        """
        path = self.zone_path(domain.name)
        if zonefile.has_zone_stanza(self._read_config(), domain.name):
            raise ResourceExistsError(
                f"Zone already declared for {domain.name} in {self._config.include_config}"
            )
        self._ensure_zones_dir()
        with self._locks.hold(path):
            if Path(path).exists():
                raise ResourceExistsError(f"Zone file already exists for {domain.name}")
            content = render(
                "bind",
                "zone.db.j2",
                override_dir=self._template_dir,
                domain=domain.name,
                ttl=self._default_ttl,
                serial=zonefile.initial_serial(self._today()),
            )
            self._install_zone(domain.name, path, content)

        stanza = render(
            "bind",
            "stanza.conf.j2",
            override_dir=self._template_dir,
            domain=domain.name,
            zone_file=path,
        )
        self._edit_config(lambda text: zonefile.add_zone_stanza(text, domain.name, stanza))
        self._reload()
        return True

    def delete_zone(self, domain: Domain) -> bool:
        path = self.zone_path(domain.name)
        self._edit_config(lambda text: zonefile.remove_zone_stanza(text, domain.name))
        with self._locks.hold(path):
            self._privileged("rm", ["-f", path], "Failed to remove zone file")
        self._reload()
        return True

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def add_record(self, domain: Domain, record: DnsRecord) -> bool:
        self._edit_zone(domain.name, lambda text: zonefile.append_record(text, record))
        return True

    def delete_record(self, domain: Domain, record: DnsRecord) -> bool:
        """Remove the line matching *record* by name, type, and content."""
        self._edit_zone(domain.name, lambda text: zonefile.remove_record(text, record))
        return True

    def update_record(self, domain: Domain, old: DnsRecord, new: DnsRecord) -> bool:
        """Replace *old* with *new* in a single zone edit (one serial bump)."""

        def _replace(text: str) -> str:
            return zonefile.append_record(zonefile.remove_record(text, old), new)

        self._edit_zone(domain.name, _replace)
        return True

    def reload(self) -> bool:
        return self._sandbox.run_privileged("systemctl", ["reload", self._config.service]).ok

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _ensure_zones_dir(self) -> None:
        zones_dir = self._config.zones_dir
        if Path(zones_dir).is_dir():
            return
        self._privileged("mkdir", ["-p", zones_dir], "Failed to create zones dir")
        self._privileged("chown", [self._config.zone_owner, zones_dir], "Failed to chown zones dir")
        self._privileged("chmod", ["755", zones_dir], "Failed to chmod zones dir")

    def _edit_zone(self, domain: str, change: Callable[[str], str]) -> None:
        path = self.zone_path(domain)
        with self._locks.hold(path):
            try:
                current = Path(path).read_text(encoding="utf-8")
            except FileNotFoundError as exc:
                raise OperationalError(f"Zone file not found for {domain}") from exc
            except OSError as exc:
                raise OperationalError(f"Cannot read zone file for {domain}: {exc}") from exc
            try:
                bumped = zonefile.increment_serial(current, self._today())
            except ValueError as exc:
                raise OperationalError(f"Zone file for {domain} is malformed: {exc}") from exc
            self._install_zone(domain, path, change(bumped))
        self._reload()

    def _install_zone(self, domain: str, path: str, content: str) -> None:
        with self._sandbox.private_tempfile(content) as candidate:
            check = self._sandbox.run("named-checkzone", [domain, str(candidate)])
            if not check.ok or "OK" not in check.output:
                raise OperationalError(
                    f"Zone file validation failed for {domain}: {check.output.strip()}",
                    detail={"exit_code": check.exit_code},
                )
        require_ok(
            self._sandbox.write_file(path, content, mode="644", owner=self._config.zone_owner),
            f"Failed to install zone file for {domain}",
        )

    def _read_config(self) -> str:
        config_path = self._config.include_config
        try:
            return Path(config_path).read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""
        except OSError as exc:
            raise OperationalError(f"Cannot read {config_path}: {exc}") from exc

    def _edit_config(self, change: Callable[[str], str]) -> None:
        config_path = self._config.include_config
        with self._locks.hold(config_path):
            current = self._read_config()
            updated = change(current)
            if updated == current:
                return
            with self._sandbox.private_tempfile(updated) as candidate:
                check = self._sandbox.run("named-checkconf", [str(candidate)])
                if not check.ok:
                    raise OperationalError(
                        f"BIND configuration validation failed: {check.output.strip()}",
                        detail={"exit_code": check.exit_code},
                    )
            require_ok(
                self._sandbox.write_file(
                    config_path, updated, mode="644", owner=self._config.config_owner
                ),
                f"Failed to install {config_path}",
            )

    def _reload(self) -> None:
        self._privileged("systemctl", ["reload", self._config.service], "Failed to reload BIND")

    def _privileged(self, command: str, args: list[str], action: str) -> None:
        require_ok(self._sandbox.run_privileged(command, args), action)
