"""Command group: DNS zones and records."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from hostctl.commands._base import HostGroup
from hostctl.services.dns import DeleteDnsZoneService, DnsRecordService, SetupDnsZoneService
from hostctl.services.inventory import InventoryService

if TYPE_CHECKING:
    from hostctl.commands._context import AppContext

_DNS_EXAMPLES = """\
  hostctl dns create 4 example.com --ip 203.0.113.10
  hostctl dns list
  hostctl dns record add 1 mail A 203.0.113.25
  hostctl dns record add 1 @ MX mail.example.com --priority 10
  hostctl dns delete 1"""

_RECORD_EXAMPLES = """\
  hostctl dns record add 1 www CNAME example.com
  hostctl dns record add 1 @ TXT 'v=spf1 mx -all' --ttl 300
  hostctl dns record update 7 203.0.113.26
  hostctl dns record list 1
  hostctl dns record delete 7"""


@click.group(cls=HostGroup, examples=_DNS_EXAMPLES)
def dns() -> None:
    """Manage DNS zones."""


@dns.command(
    examples="""\
  hostctl dns create 4 example.com
  hostctl dns create 4 example.com --ip 203.0.113.10"""
)
@click.argument("site_id", type=int)
@click.argument("domain")
@click.option("--ip", "server_ip", default=None, help="Seed '@' A and 'www' CNAME records.")
@click.pass_obj
def create(app: AppContext, site_id: int, domain: str, server_ip: str | None) -> None:
    """Create a zone for DOMAIN belonging to SITE_ID."""
    service = SetupDnsZoneService.from_panel(app.panel)
    app.run("create_dns_zone", lambda: service.execute(site_id, domain.lower(), server_ip))


@dns.command(examples="  hostctl dns delete 1")
@click.argument("domain_id", type=int)
@click.pass_obj
def delete(app: AppContext, domain_id: int) -> None:
    """Delete a zone and all its records."""
    service = DeleteDnsZoneService.from_panel(app.panel)
    app.run("delete_dns_zone", lambda: service.execute(domain_id))


@dns.command(name="list", examples="  hostctl dns list\n  hostctl dns list --site 4")
@click.option("--site", "site_id", type=int, default=None, help="Only this site's zones.")
@click.pass_obj
def list_cmd(app: AppContext, site_id: int | None) -> None:
    """List zones."""
    inventory = InventoryService.from_panel(app.panel)
    app.run_listing("list_dns_zones", lambda: inventory.zones(site_id), noun="zones")


# ── Records ───────────────────────────────────────────────────────────


@dns.group(examples=_RECORD_EXAMPLES)
def record() -> None:
    """Manage records inside a zone."""


@record.command(
    examples="""\
  hostctl dns record add 1 mail A 203.0.113.25
  hostctl dns record add 1 @ MX mail.example.com --priority 10"""
)
@click.argument("domain_id", type=int)
@click.argument("name")
@click.argument("record_type", metavar="TYPE")
@click.argument("content")
@click.option("--ttl", type=int, default=None, help="TTL in seconds (default from config).")
@click.option("--priority", type=int, default=None, help="MX priority.")
@click.pass_obj
def add(
    app: AppContext,
    domain_id: int,
    name: str,
    record_type: str,
    content: str,
    ttl: int | None,
    priority: int | None,
) -> None:
    """Add a NAME TYPE CONTENT record to zone DOMAIN_ID."""
    service = DnsRecordService.from_panel(app.panel)
    app.run(
        "add_dns_record",
        lambda: service.add_record(domain_id, name, record_type, content, ttl, priority),
    )


@record.command(examples="  hostctl dns record update 7 203.0.113.26 --ttl 600")
@click.argument("record_id", type=int)
@click.argument("content")
@click.option("--ttl", type=int, default=None, help="New TTL in seconds.")
@click.option("--priority", type=int, default=None, help="New MX priority.")
@click.pass_obj
def update(
    app: AppContext, record_id: int, content: str, ttl: int | None, priority: int | None
) -> None:
    """Change a record's content, TTL or priority."""
    service = DnsRecordService.from_panel(app.panel)
    app.run(
        "update_dns_record",
        lambda: service.update_record(record_id, content, ttl, priority),
    )


@record.command(name="delete", examples="  hostctl dns record delete 7")
@click.argument("record_id", type=int)
@click.pass_obj
def delete_record(app: AppContext, record_id: int) -> None:
    """Delete a record."""
    service = DnsRecordService.from_panel(app.panel)
    app.run("delete_dns_record", lambda: service.delete_record(record_id))


@record.command(name="list", examples="  hostctl dns record list 1")
@click.argument("domain_id", type=int)
@click.pass_obj
def list_records(app: AppContext, domain_id: int) -> None:
    """List the records of zone DOMAIN_ID."""
    inventory = InventoryService.from_panel(app.panel)
    app.run_listing(
        "list_dns_records",
        lambda: inventory.records(domain_id),
        noun="records",
        columns=["id", "name", "type", "priority", "content", "ttl"],
    )
