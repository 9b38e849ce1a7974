"""DNS zone and record provisioning.

Pipeline: VALIDATE → CHECK ZONE NAME → RESOLVE SITE → PERSIST DOMAIN →
CREATE ZONE → [PERSIST + ADD A "@" → PERSIST + ADD CNAME "www"]
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hostctl.domain.entities import DnsRecord, Domain
from hostctl.domain.errors import ConflictError, NotFoundError
from hostctl.domain.types import DnsRecordType
from hostctl.domain.validation import validate_domain, validate_ip, validate_record
from hostctl.services.base import BaseService, ProvisioningTransaction

if TYPE_CHECKING:
    from hostctl.infrastructure.adapters.contracts import DnsManager
    from hostctl.infrastructure.panel import Panel
    from hostctl.infrastructure.repositories.store import (
        DnsRecordRepository,
        DomainRepository,
        SiteRepository,
    )

logger = logging.getLogger(__name__)


def _add(
    txn: ProvisioningTransaction,
    records: DnsRecordRepository,
    manager: DnsManager,
    domain: Domain,
    record: DnsRecord,
) -> DnsRecord:
    """Persist *record* and add it to the zone, registering both undos."""
    created = txn.persist(records, record)
    txn.step(
        f"add {created.type} record {created.name}",
        lambda: manager.add_record(domain, created),
        undo=lambda: manager.delete_record(domain, created),
    )
    return created


class SetupDnsZoneService(BaseService):
    """Creates a zone for a site, seeded with default records when an IP is given."""

    def __init__(
        self,
        domains: DomainRepository,
        records: DnsRecordRepository,
        sites: SiteRepository,
        manager: DnsManager,
        *,
        default_ttl: int = 3600,
    ) -> None:
        self._domains = domains
        self._records = records
        self._sites = sites
        self._manager = manager
        self._default_ttl = default_ttl

    @classmethod
    def from_panel(cls, panel: Panel) -> SetupDnsZoneService:
        return cls(
            panel.domains,
            panel.dns_records,
            panel.sites,
            panel.dns,
            default_ttl=panel.settings.dns.default_ttl,
        )

    def execute(self, site_id: int, domain_name: str, server_ip: str | None = None) -> Domain:
        validate_domain(domain_name)
        if server_ip is not None:
            server_ip = validate_ip(server_ip, version=4)

        if self._domains.find_by_unique_key(domain_name) is not None:
            raise ConflictError(f"DNS zone for '{domain_name}' already exists")

        if self._sites.find(site_id) is None:
            raise NotFoundError(f"Site {site_id} not found")

        logger.info("Provisioning DNS zone %s", domain_name)
        with self._provisioning("Failed to create DNS zone") as txn:
            domain = txn.persist(self._domains, Domain(site_id=site_id, name=domain_name))
            txn.step(
                "create zone",
                lambda: self._manager.create_zone(domain),
                undo=lambda: self._manager.delete_zone(domain),
            )
            if server_ip:
                assert domain.id is not None
                _add(
                    txn,
                    self._records,
                    self._manager,
                    domain,
                    DnsRecord(
                        domain_id=domain.id,
                        name="@",
                        type=DnsRecordType.A,
                        content=server_ip,
                        ttl=self._default_ttl,
                    ),
                )
                _add(
                    txn,
                    self._records,
                    self._manager,
                    domain,
                    DnsRecord(
                        domain_id=domain.id,
                        name="www",
                        type=DnsRecordType.CNAME,
                        content=f"{domain_name}.",
                        ttl=self._default_ttl,
                    ),
                )
        return domain


class DeleteDnsZoneService(BaseService):
    """Removes the zone from the backend, then the domain and its records."""

    def __init__(self, domains: DomainRepository, manager: DnsManager) -> None:
        self._domains = domains
        self._manager = manager

    @classmethod
    def from_panel(cls, panel: Panel) -> DeleteDnsZoneService:
        return cls(panel.domains, panel.dns)

    def execute(self, domain_id: int) -> Domain:
        domain = self._domains.find(domain_id)
        if domain is None:
            raise NotFoundError(f"DNS zone {domain_id} not found")

        with self._provisioning("Failed to delete DNS zone") as txn:
            txn.step("delete zone", lambda: self._manager.delete_zone(domain))
            txn.step("delete domain record", lambda: self._domains.delete(domain_id))
        return domain


class DnsRecordService(BaseService):
    """Adds, changes and removes individual records of an existing zone."""

    def __init__(
        self,
        domains: DomainRepository,
        records: DnsRecordRepository,
        manager: DnsManager,
        *,
        default_ttl: int = 3600,
    ) -> None:
        self._domains = domains
        self._records = records
        self._manager = manager
        self._default_ttl = default_ttl

    @classmethod
    def from_panel(cls, panel: Panel) -> DnsRecordService:
        return cls(
            panel.domains,
            panel.dns_records,
            panel.dns,
            default_ttl=panel.settings.dns.default_ttl,
        )

    def add_record(
        self,
        domain_id: int,
        name: str,
        record_type: str,
        content: str,
        ttl: int | None = None,
        priority: int | None = None,
    ) -> DnsRecord:
        ttl = self._default_ttl if ttl is None else ttl
        rtype, content = validate_record(name, record_type, content, ttl, priority)
        domain = self._domain(domain_id)
        if self._records.list_by(domain_id=domain_id, name=name, type=rtype, content=content):
            raise ConflictError(
                f"Record {name} {rtype} {content} already exists in {domain.name}"
            )

        with self._provisioning("Failed to add DNS record") as txn:
            return _add(
                txn,
                self._records,
                self._manager,
                domain,
                DnsRecord(
                    domain_id=domain_id,
                    name=name,
                    type=rtype,
                    content=content,
                    ttl=ttl,
                    priority=priority,
                ),
            )

    def update_record(
        self,
        record_id: int,
        content: str,
        ttl: int | None = None,
        priority: int | None = None,
    ) -> DnsRecord:
        """Change a record's content, TTL, or priority; name and type are fixed."""
        old = self._record(record_id)
        ttl = old.ttl if ttl is None else ttl
        if priority is None and old.type is DnsRecordType.MX:
            priority = old.priority
        rtype, content = validate_record(old.name, old.type, content, ttl, priority)
        domain = self._domain(old.domain_id)
        new = old.model_copy(update={"content": content, "ttl": ttl, "priority": priority})

        with self._provisioning("Failed to update DNS record") as txn:
            txn.on_rollback("restore DNS record", lambda: self._records.update(old))
            self._records.update(new)
            txn.step(
                f"update {rtype} record {old.name}",
                lambda: self._manager.update_record(domain, old, new),
            )
        return new

    def delete_record(self, record_id: int) -> DnsRecord:
        record = self._record(record_id)
        domain = self._domain(record.domain_id)
        with self._provisioning("Failed to delete DNS record") as txn:
            txn.step(
                f"delete {record.type} record {record.name}",
                lambda: self._manager.delete_record(domain, record),
            )
            txn.step("delete DNS record row", lambda: self._records.delete(record_id))
        return record

    def _domain(self, domain_id: int) -> Domain:
        domain = self._domains.find(domain_id)
        if domain is None:
            raise NotFoundError(f"DNS zone {domain_id} not found")
        return domain

    def _record(self, record_id: int) -> DnsRecord:
        record = self._records.find(record_id)
        if record is None:
            raise NotFoundError(f"DNS record {record_id} not found")
        return record
