"""Classification enums shared by entities, adapters, and services."""

from __future__ import annotations

from enum import StrEnum


class DatabaseEngine(StrEnum):
    """Database engines a Database record can be provisioned on."""

    MYSQL = "mysql"
    POSTGRESQL = "postgresql"


class DnsRecordType(StrEnum):
    """Record types accepted in a zone."""

    A = "A"
    AAAA = "AAAA"
    CNAME = "CNAME"
    MX = "MX"
    NS = "NS"
    TXT = "TXT"


# Record types whose content is a host name and must end with a dot.
FQDN_RECORD_TYPES: frozenset[str] = frozenset(
    {DnsRecordType.CNAME, DnsRecordType.MX, DnsRecordType.NS}
)


class DnsBackend(StrEnum):
    """Interchangeable DNS server implementations."""

    BIND = "bind"
    POWERDNS = "powerdns"


class ErrorKind(StrEnum):
    """Closed set of failure kinds callers can branch on."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    SECURITY = "security"
    OPERATIONAL = "operational"
