"""PowerDNS DNS backend (generic SQL backend tables).

Zones and records are rows in the PowerDNS ``domains`` and ``records``
tables; the authoritative server reads them directly, so no reload is
needed. Host names are stored without the trailing dot, as PowerDNS
expects.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Column,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    delete,
    insert,
    select,
)
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from hostctl.domain.errors import OperationalError, ResourceExistsError
from hostctl.domain.naming import full_record_name
from hostctl.domain.types import FQDN_RECORD_TYPES

if TYPE_CHECKING:
    from collections.abc import Iterator

    from hostctl.config.models import PowerDnsConfig
    from hostctl.domain.entities import DnsRecord, Domain

logger = logging.getLogger(__name__)

pdns_metadata = MetaData()

pdns_domains = Table(
    "domains",
    pdns_metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, unique=True),
    Column("type", String(6), nullable=False),
    Column("account", String(40)),
)

pdns_records = Table(
    "records",
    pdns_metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("domain_id", Integer, nullable=False),
    Column("name", String(255)),
    Column("type", String(10)),
    Column("content", String(64000)),
    Column("ttl", Integer),
    Column("prio", Integer),
)

SOA_TIMERS = "10800 3600 604800 3600"


def powerdns_engine(config: PowerDnsConfig) -> Engine:
    url = URL.create(
        "mysql+mysqlconnector",
        username=config.user,
        password=config.password.get_secret_value() or None,
        host=config.host,
        port=config.port,
        database=config.database,
    )
    return create_engine(
        url,
        pool_pre_ping=True,
        connect_args={"connection_timeout": config.connect_timeout},
    )


class PowerDnsAdapter:
    """DNS adapter writing to a PowerDNS SQL backend."""

    def __init__(
        self,
        engine: Engine | None = None,
        *,
        config: PowerDnsConfig | None = None,
        account: str = "hostctl",
        default_ttl: int = 3600,
    ) -> None:
        if engine is None and config is None:
            raise ValueError("PowerDnsAdapter needs an engine or a config")
        self._engine = engine
        self._config = config
        self._account = config.account if config is not None else account
        self._default_ttl = default_ttl

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            assert self._config is not None
            self._engine = powerdns_engine(self._config)
        return self._engine

    # ------------------------------------------------------------------
    # Zones
    # ------------------------------------------------------------------

    def create_zone(self, domain: Domain) -> bool:
        """Insert the zone with its SOA and NS rows; an existing zone is left untouched."""
        name = domain.name
        soa = f"ns1.{name} hostmaster.{name} 1 {SOA_TIMERS}"
        with self._transaction(f"create zone {name}") as conn:
            existing = conn.execute(
                select(pdns_domains.c.id).where(pdns_domains.c.name == name)
            ).first()
            if existing is not None:
                raise ResourceExistsError(f"PowerDNS zone already exists for {name}")
            try:
                result = conn.execute(
                    insert(pdns_domains).values(name=name, type="NATIVE", account=self._account)
                )
            except IntegrityError as exc:
                raise ResourceExistsError(f"PowerDNS zone already exists for {name}") from exc
            zone_id = result.inserted_primary_key[0]
            conn.execute(
                insert(pdns_records),
                [
                    self._row(zone_id, name, "SOA", soa, self._default_ttl, 0),
                    self._row(zone_id, name, "NS", f"ns1.{name}", self._default_ttl, 0),
                    self._row(zone_id, name, "NS", f"ns2.{name}", self._default_ttl, 0),
                ],
            )
        return True

    def delete_zone(self, domain: Domain) -> bool:
        with self._transaction(f"delete zone {domain.name}") as conn:
            zone_id = self._zone_id(conn, domain.name, required=False)
            if zone_id is None:
                return True
            conn.execute(delete(pdns_records).where(pdns_records.c.domain_id == zone_id))
            conn.execute(delete(pdns_domains).where(pdns_domains.c.id == zone_id))
        return True

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def add_record(self, domain: Domain, record: DnsRecord) -> bool:
        with self._transaction(f"add {record.type} record to {domain.name}") as conn:
            zone_id = self._zone_id(conn, domain.name)
            conn.execute(insert(pdns_records).values(**self._record_row(zone_id, domain, record)))
        return True

    def delete_record(self, domain: Domain, record: DnsRecord) -> bool:
        """Delete rows equal to *record* in name, type, and content."""
        with self._transaction(f"delete {record.type} record from {domain.name}") as conn:
            zone_id = self._zone_id(conn, domain.name)
            self._delete_matching(conn, zone_id, domain, record)
        return True

    def update_record(self, domain: Domain, old: DnsRecord, new: DnsRecord) -> bool:
        with self._transaction(f"update {old.type} record in {domain.name}") as conn:
            zone_id = self._zone_id(conn, domain.name)
            self._delete_matching(conn, zone_id, domain, old)
            conn.execute(insert(pdns_records).values(**self._record_row(zone_id, domain, new)))
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Connection]:
        """``engine.begin()`` that converts driver errors to OperationalError."""
        try:
            with self.engine.begin() as conn:
                yield conn
        except SQLAlchemyError as exc:
            cause = getattr(exc, "orig", None) or exc
            logger.warning("PowerDNS %s failed: %s", action, cause)
            raise OperationalError(f"PowerDNS {action} failed: {cause}") from exc

    @staticmethod
    def _zone_id(conn: Connection, name: str, *, required: bool = True) -> int | None:
        zone_id = conn.execute(
            select(pdns_domains.c.id).where(pdns_domains.c.name == name)
        ).scalar()
        if zone_id is None and required:
            raise OperationalError(f"PowerDNS zone not found for {name}")
        return zone_id

    @staticmethod
    def _content(record: DnsRecord) -> str:
        if record.type in FQDN_RECORD_TYPES:
            return record.content.rstrip(".")
        return record.content

    def _record_row(self, zone_id: int, domain: Domain, record: DnsRecord) -> dict[str, Any]:
        return self._row(
            zone_id,
            full_record_name(record.name, domain.name),
            str(record.type),
            self._content(record),
            record.ttl,
            record.priority or 0,
        )

    def _delete_matching(
        self, conn: Connection, zone_id: int, domain: Domain, record: DnsRecord
    ) -> None:
        conn.execute(
            delete(pdns_records).where(
                pdns_records.c.domain_id == zone_id,
                pdns_records.c.name == full_record_name(record.name, domain.name),
                pdns_records.c.type == str(record.type),
                pdns_records.c.content == self._content(record),
            )
        )

    @staticmethod
    def _row(
        zone_id: int, name: str, rtype: str, content: str, ttl: int, prio: int
    ) -> dict[str, Any]:
        return {
            "domain_id": zone_id,
            "name": name,
            "type": rtype,
            "content": content,
            "ttl": ttl,
            "prio": prio,
        }

