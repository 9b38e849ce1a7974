"""Input validation for provisioning requests.

Every check raises :class:`ValidationError` and runs before a service
touches the store or any backend.
"""

from __future__ import annotations

import ipaddress
import posixpath
import re

from hostctl.domain.errors import ValidationError
from hostctl.domain.types import DnsRecordType

DOMAIN_RE = re.compile(r"^[a-z0-9]+([\-.][a-z0-9]+)*\.[a-z]{2,}$")
USERNAME_RE = re.compile(r"^[a-z][a-z0-9_-]{2,31}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
DB_NAME_RE = re.compile(r"^[a-zA-Z0-9_]{1,64}$")
DB_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]{1,32}$")
FTP_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_-]{3,32}$")
RECORD_NAME_RE = re.compile(
    r"^(@|\*|(\*\.)?[a-zA-Z0-9_]([a-zA-Z0-9_-]*[a-zA-Z0-9_])?"
    r"(\.[a-zA-Z0-9_]([a-zA-Z0-9_-]*[a-zA-Z0-9_])?)*)$"
)
HOSTNAME_RE = re.compile(
    r"^([a-zA-Z0-9_]([a-zA-Z0-9-]*[a-zA-Z0-9])?\.)*[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?\.?$"
)

# One cron field: a list of atoms, each ``*``, a number, a range or a
# three-letter name, optionally stepped with ``/n``.
_CRON_ATOM = r"(\*|\d+(-\d+)?|[a-zA-Z]{3}(-[a-zA-Z]{3})?)(/\d+)?"
CRON_FIELD_RE = re.compile(rf"^{_CRON_ATOM}(,{_CRON_ATOM})*$")

PHP_VERSION_RE = re.compile(r"^\d+\.\d+$")

# Server-owned schemas and accounts; never created, granted on or dropped.
RESERVED_DATABASE_NAMES: frozenset[str] = frozenset(
    {"mysql", "sys", "information_schema", "performance_schema", "test"}
)
RESERVED_DATABASE_USERNAMES: frozenset[str] = frozenset({"root", "mysql", "mariadb"})

MYSQL_PRIVILEGES: frozenset[str] = frozenset(
    {
        "ALL PRIVILEGES",
        "SELECT",
        "INSERT",
        "UPDATE",
        "DELETE",
        "CREATE",
        "DROP",
        "ALTER",
        "INDEX",
        "REFERENCES",
        "CREATE VIEW",
        "SHOW VIEW",
        "CREATE ROUTINE",
        "ALTER ROUTINE",
        "EXECUTE",
        "TRIGGER",
        "EVENT",
        "LOCK TABLES",
        "CREATE TEMPORARY TABLES",
    }
)

MIN_TTL = 60
MAX_TTL = 604800


def validate_domain(domain: str) -> str:
    if not DOMAIN_RE.match(domain):
        raise ValidationError(f"Invalid domain format: {domain!r}", detail={"field": "domain"})
    return domain


def validate_username(username: str) -> str:
    """Panel login names: lowercase, start with a letter, 3-32 chars."""
    if not USERNAME_RE.match(username):
        raise ValidationError(
            f"Invalid username format: {username!r}", detail={"field": "username"}
        )
    return username


def validate_email(email: str) -> str:
    if not EMAIL_RE.match(email):
        raise ValidationError(f"Invalid email address: {email!r}", detail={"field": "email"})
    return email


def validate_password(password: str, *, field: str = "password", min_length: int = 6) -> str:
    if len(password) < min_length:
        raise ValidationError(
            f"Password must be at least {min_length} characters",
            detail={"field": field},
        )
    if "\x00" in password or "\n" in password:
        raise ValidationError("Password contains control characters", detail={"field": field})
    return password


def validate_database_name(name: str) -> str:
    if not DB_NAME_RE.match(name):
        raise ValidationError(
            f"Invalid database name format: {name!r}", detail={"field": "db_name"}
        )
    if name.lower() in RESERVED_DATABASE_NAMES:
        raise ValidationError(
            f"Database name {name!r} is reserved", detail={"field": "db_name"}
        )
    return name


def validate_database_username(username: str) -> str:
    if not DB_USERNAME_RE.match(username):
        raise ValidationError(
            f"Invalid database username format: {username!r}",
            detail={"field": "db_username"},
        )
    if username.lower() in RESERVED_DATABASE_USERNAMES:
        raise ValidationError(
            f"Database username {username!r} is reserved",
            detail={"field": "db_username"},
        )
    return username


def validate_privileges(privileges: list[str]) -> list[str]:
    """Normalize and allowlist MySQL privilege keywords.

    Privileges are interpolated into ``GRANT`` statements, so anything
    outside the fixed keyword set is rejected.
    """
    if not privileges:
        raise ValidationError(
            "At least one privilege is required", detail={"field": "privileges"}
        )
    normalized = [" ".join(p.upper().split()) for p in privileges]
    unknown = [p for p in normalized if p not in MYSQL_PRIVILEGES]
    if unknown:
        raise ValidationError(
            f"Unknown privilege(s): {', '.join(unknown)}",
            detail={"field": "privileges", "unknown": unknown},
        )
    return normalized


def validate_ftp_username(username: str) -> str:
    if not FTP_USERNAME_RE.match(username):
        raise ValidationError(
            f"Invalid FTP username format: {username!r}",
            detail={"field": "ftp_username"},
        )
    return username


def validate_home_directory(home_directory: str, sites_root: str) -> str:
    """Return the normalized *home_directory*, which must lie below *sites_root*.

    ``..`` segments are collapsed before the containment check so
    ``/srv/sites/../etc`` is refused.
    """
    if not posixpath.isabs(home_directory):
        raise ValidationError(
            f"Home directory must be an absolute path: {home_directory!r}",
            detail={"field": "home_directory"},
        )
    root = posixpath.normpath(sites_root)
    normalized = posixpath.normpath(home_directory)
    if posixpath.commonpath([root, normalized]) != root or normalized == root:
        raise ValidationError(
            f"Home directory must be within {root}/",
            detail={"field": "home_directory"},
        )
    return normalized


def validate_cron_schedule(schedule: str) -> str:
    """Return *schedule* collapsed to single spaces; exactly five fields."""
    parts = schedule.split()
    if len(parts) != 5 or not all(CRON_FIELD_RE.match(p) for p in parts):
        raise ValidationError(
            f"Invalid cron schedule format: {schedule!r}",
            detail={"field": "schedule"},
        )
    return " ".join(parts)


def validate_cron_command(command: str) -> str:
    stripped = command.strip()
    if not stripped:
        raise ValidationError("Command cannot be empty", detail={"field": "command"})
    # A newline would smuggle a second crontab entry.
    if "\n" in stripped or "\r" in stripped or "\x00" in stripped:
        raise ValidationError("Command must be a single line", detail={"field": "command"})
    return stripped


def validate_php_version(version: str, known: list[str]) -> str:
    if not PHP_VERSION_RE.match(version) or version not in known:
        raise ValidationError(
            f"Unsupported PHP version: {version!r} (known: {', '.join(known)})",
            detail={"field": "php_version"},
        )
    return version


def validate_ip(address: str, *, version: int | None = None) -> str:
    try:
        ip = ipaddress.ip_address(address)
    except ValueError as exc:
        raise ValidationError(f"Invalid IP address: {address!r}", detail={"field": "ip"}) from exc
    if version is not None and ip.version != version:
        raise ValidationError(
            f"Expected an IPv{version} address: {address!r}",
            detail={"field": "ip"},
        )
    return str(ip)


def validate_record(
    name: str,
    record_type: str,
    content: str,
    ttl: int,
    priority: int | None,
) -> tuple[DnsRecordType, str]:
    """Validate a DNS record's fields and return ``(type, content)``."""
    try:
        rtype = DnsRecordType(record_type.upper())
    except ValueError as exc:
        allowed = ", ".join(t.value for t in DnsRecordType)
        raise ValidationError(
            f"Unsupported record type: {record_type!r} (allowed: {allowed})",
            detail={"field": "type"},
        ) from exc

    if not RECORD_NAME_RE.match(name):
        raise ValidationError(f"Invalid record name: {name!r}", detail={"field": "name"})
    if not MIN_TTL <= ttl <= MAX_TTL:
        raise ValidationError(
            f"TTL must be between {MIN_TTL} and {MAX_TTL}",
            detail={"field": "ttl"},
        )
    if "\n" in content or "\r" in content or not content.strip():
        raise ValidationError(
            "Record content must be a non-empty single line", detail={"field": "content"}
        )

    content = content.strip()
    if rtype is DnsRecordType.A:
        content = validate_ip(content, version=4)
    elif rtype is DnsRecordType.AAAA:
        content = validate_ip(content, version=6)
    elif rtype in (DnsRecordType.CNAME, DnsRecordType.MX, DnsRecordType.NS):
        if not HOSTNAME_RE.match(content):
            raise ValidationError(f"Invalid host name: {content!r}", detail={"field": "content"})
    elif rtype is DnsRecordType.TXT:
        if len(content) > 255:
            raise ValidationError("TXT content exceeds 255 characters", detail={"field": "content"})

    if rtype is DnsRecordType.MX:
        if priority is None or not 0 <= priority <= 65535:
            raise ValidationError(
                "MX records require a priority between 0 and 65535",
                detail={"field": "priority"},
            )
    elif priority is not None:
        raise ValidationError("Priority is only valid for MX records", detail={"field": "priority"})

    return rtype, content
