"""Command group: sites (document root, PHP-FPM pool, nginx vhost)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from hostctl.commands._base import HostGroup
from hostctl.services.inventory import InventoryService
from hostctl.services.site import CreateSiteService, DeleteSiteService

if TYPE_CHECKING:
    from hostctl.commands._context import AppContext

_SITE_EXAMPLES = """\
  hostctl site create 1 example.com
  hostctl site create 1 shop.example.com --php 8.3 --ssl
  hostctl site list --user 1
  hostctl site delete 4"""


@click.group(cls=HostGroup, examples=_SITE_EXAMPLES)
def site() -> None:
    """Provision and remove websites."""


@site.command(
    examples="""\
  hostctl site create 1 example.com
  hostctl site create 1 shop.example.com --php 8.3 --ssl"""
)
@click.argument("user_id", type=int)
@click.argument("domain")
@click.option("--php", "php_version", default="8.2", show_default=True, help="PHP version.")
@click.option("--ssl", "ssl_enabled", is_flag=True, help="Serve over HTTPS.")
@click.pass_obj
def create(
    app: AppContext, user_id: int, domain: str, php_version: str, ssl_enabled: bool
) -> None:
    """Create a site for USER_ID serving DOMAIN."""
    service = CreateSiteService.from_panel(app.panel)
    app.run(
        "create_site",
        lambda: service.execute(user_id, domain.lower(), php_version, ssl_enabled),
    )


@site.command(examples="  hostctl site delete 4")
@click.argument("site_id", type=int)
@click.pass_obj
def delete(app: AppContext, site_id: int) -> None:
    """Delete a site, its vhost, pool and files."""
    service = DeleteSiteService.from_panel(app.panel)
    app.run("delete_site", lambda: service.execute(site_id))


@site.command(name="list", examples="  hostctl site list\n  hostctl site list --user 1")
@click.option("--user", "user_id", type=int, default=None, help="Only this user's sites.")
@click.pass_obj
def list_cmd(app: AppContext, user_id: int | None) -> None:
    """List sites."""
    inventory = InventoryService.from_panel(app.panel)
    app.run_listing(
        "list_sites",
        lambda: inventory.sites(user_id),
        noun="sites",
        columns=["id", "user_id", "domain", "php_version", "ssl_enabled"],
    )
