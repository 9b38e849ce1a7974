"""Text rules for BIND zone files and the zone include config.

Pure functions over strings so the serial, record-line, and stanza rules
can be exercised without a DNS server.
"""

from __future__ import annotations

import re
from datetime import date

from hostctl.domain.entities import DnsRecord
from hostctl.domain.types import FQDN_RECORD_TYPES, DnsRecordType

SERIAL_RE = re.compile(r"(\d{10})\s*;\s*Serial")


def initial_serial(today: date) -> int:
    """First serial of a day: ``YYYYMMDD01``."""
    return int(today.strftime("%Y%m%d")) * 100 + 1


def next_serial(current: int | None, today: date) -> int:
    """Return the serial that follows *current* on *today*.

    Same-day edits increment the two-digit suffix; the first edit on a new
    day resets it to ``01``. The result is always greater than *current*,
    so a serial already ahead of the calendar keeps counting up.

    The 100th edit of a day carries into the date digits: ``YYYYMMDD99``
    becomes the next date's ``00`` serial, and later edits count on from
    there. Serials stay monotonic, which is all secondaries compare.
    """
    base = initial_serial(today)
    if current is None:
        return base
    return max(base, current + 1)


def read_serial(zone_text: str) -> int | None:
    match = SERIAL_RE.search(zone_text)
    return int(match.group(1)) if match else None


def increment_serial(zone_text: str, today: date) -> str:
    """Rewrite the SOA serial of *zone_text* to its next value.

    Raises:
        ValueError: If the zone has no ``NNNNNNNNNN ; Serial`` marker.
    """
    current = read_serial(zone_text)
    if current is None:
        raise ValueError("zone file has no SOA serial marker")
    new = next_serial(current, today)
    return SERIAL_RE.sub(f"{new} ; Serial", zone_text, count=1)


def record_content(record: DnsRecord) -> str:
    """Content as written in a zone file (trailing dot, TXT quoting)."""
    content = record.content
    if record.type in FQDN_RECORD_TYPES and not content.endswith("."):
        content += "."
    if record.type == DnsRecordType.TXT and not content.startswith('"'):
        escaped = content.replace("\\", "\\\\").replace('"', '\\"')
        content = f'"{escaped}"'
    return content


def format_record(record: DnsRecord) -> str:
    """Serialize *record* as one zone line: ``name IN type [priority] content``."""
    rtype = str(record.type)
    content = record_content(record)
    if record.type == DnsRecordType.MX and record.priority is not None:
        return f"{record.name:<23} IN  {rtype:<7} {record.priority} {content}"
    return f"{record.name:<23} IN  {rtype:<7} {content}"


def record_matches(line: str, record: DnsRecord, *, match_content: bool = True) -> bool:
    """True when zone *line* holds *record*.

    Name and type must be equal. With *match_content* the remaining tokens
    (priority and content) must be equal too, so one record of a multi-value
    RRset can be removed without touching its siblings.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith(";"):
        return False
    line_parts = stripped.split()
    wanted = format_record(record).split()
    if len(line_parts) < 3:
        return False
    if line_parts[0] != wanted[0] or line_parts[2] != wanted[2]:
        return False
    if not match_content:
        return True
    return line_parts[3:] == wanted[3:]


def append_record(zone_text: str, record: DnsRecord) -> str:
    body = zone_text.rstrip("\n")
    return f"{body}\n{format_record(record)}\n"


def remove_record(zone_text: str, record: DnsRecord, *, match_content: bool = True) -> str:
    kept = [
        line
        for line in zone_text.splitlines()
        if not record_matches(line, record, match_content=match_content)
    ]
    return "\n".join(kept) + "\n"


# ---------------------------------------------------------------------------
# Include config stanzas
# ---------------------------------------------------------------------------


def has_zone_stanza(config_text: str, domain: str) -> bool:
    return _stanza_head(domain).search(config_text) is not None


def add_zone_stanza(config_text: str, domain: str, stanza: str) -> str:
    """Append *stanza* unless a stanza for *domain* is already present."""
    if has_zone_stanza(config_text, domain):
        return config_text
    if config_text and not config_text.endswith("\n"):
        config_text += "\n"
    if not stanza.endswith("\n"):
        stanza += "\n"
    return config_text + stanza


def remove_zone_stanza(config_text: str, domain: str) -> str:
    """Drop the stanza for *domain* (nested braces included). No-op if absent."""
    span = _find_stanza(config_text, domain)
    if span is None:
        return config_text
    start, end = span
    return config_text[:start] + config_text[end:]


def _stanza_head(domain: str) -> re.Pattern[str]:
    return re.compile(rf'zone\s+"{re.escape(domain)}"\s*(?:IN\s+)?\{{')


def _find_stanza(config_text: str, domain: str) -> tuple[int, int] | None:
    """Locate ``zone "<domain>" { ... };`` and return its span with trailing whitespace."""
    match = _stanza_head(domain).search(config_text)
    if match is None:
        return None
    depth = 1
    pos = match.end()
    while pos < len(config_text) and depth:
        char = config_text[pos]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        pos += 1
    if depth:
        return None
    semi = re.compile(r"\s*;[ \t]*\n?").match(config_text, pos)
    end = semi.end() if semi else pos
    return match.start(), end
