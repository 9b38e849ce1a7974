"""Command group: panel users."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from hostctl.commands._base import HostGroup
from hostctl.services.inventory import InventoryService
from hostctl.services.user import CreateUserService, DeleteUserService

if TYPE_CHECKING:
    from hostctl.commands._context import AppContext

_USER_EXAMPLES = """\
  hostctl user create alice alice@example.com
  hostctl user create bob bob@example.com --password 'correct horse'
  hostctl --json user list
  hostctl user delete 3"""


@click.group(cls=HostGroup, examples=_USER_EXAMPLES)
def user() -> None:
    """Manage panel users, the owners of all resources."""


@user.command(
    examples="""\
  hostctl user create alice alice@example.com
  hostctl user create bob bob@example.com --password 'correct horse'"""
)
@click.argument("username")
@click.argument("email")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Login password (prompted when omitted).",
)
@click.pass_obj
def create(app: AppContext, username: str, email: str, password: str) -> None:
    """Create a panel user."""
    service = CreateUserService.from_panel(app.panel)
    app.run("create_user", lambda: service.execute(username, email, password))


@user.command(examples="  hostctl user delete 3")
@click.argument("user_id", type=int)
@click.pass_obj
def delete(app: AppContext, user_id: int) -> None:
    """Delete a user that owns no sites, databases, FTP accounts or cron jobs."""
    service = DeleteUserService.from_panel(app.panel)
    app.run("delete_user", lambda: service.execute(user_id))


@user.command(name="list", examples="  hostctl user list\n  hostctl -q user list")
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List panel users."""
    inventory = InventoryService.from_panel(app.panel)
    app.run_listing("list_users", inventory.users, noun="users")
