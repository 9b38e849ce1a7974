"""Command group: PHP runtimes."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from hostctl.commands._base import HostGroup
from hostctl.services.inventory import InventoryService

if TYPE_CHECKING:
    from hostctl.commands._context import AppContext


@click.group(cls=HostGroup, examples="  hostctl php list\n  hostctl --json php list")
def php() -> None:
    """Inspect installed PHP runtimes."""


@php.command(name="list", examples="  hostctl php list")
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List PHP versions installed on this server."""
    inventory = InventoryService.from_panel(app.panel)
    app.run_listing(
        "list_php_runtimes",
        inventory.php_runtimes,
        noun="PHP runtimes",
        columns=["version", "binary", "fpm_socket"],
    )
