"""Command group: FTP accounts."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from hostctl.commands._base import HostGroup
from hostctl.services.ftp import (
    ChangeFtpPasswordService,
    CreateFtpUserService,
    DeleteFtpUserService,
)
from hostctl.services.inventory import InventoryService

if TYPE_CHECKING:
    from hostctl.commands._context import AppContext

_FTP_EXAMPLES = """\
  hostctl ftp create 1 alice_ftp
  hostctl ftp create 1 deploy --home /srv/hostctl/sites/alice/example.com
  hostctl ftp passwd 2
  hostctl ftp delete 2"""

_password_option = click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Account password (prompted when omitted).",
)


@click.group(cls=HostGroup, examples=_FTP_EXAMPLES)
def ftp() -> None:
    """Manage FTP accounts."""


@ftp.command(
    examples="""\
  hostctl ftp create 1 alice_ftp
  hostctl ftp create 1 deploy --home /srv/hostctl/sites/alice/example.com"""
)
@click.argument("user_id", type=int)
@click.argument("ftp_username")
@_password_option
@click.option("--home", "home_directory", default=None, help="Home directory (default: owner's).")
@click.pass_obj
def create(
    app: AppContext,
    user_id: int,
    ftp_username: str,
    password: str,
    home_directory: str | None,
) -> None:
    """Create FTP account FTP_USERNAME for USER_ID."""
    service = CreateFtpUserService.from_panel(app.panel)
    app.run(
        "create_ftp_user",
        lambda: service.execute(user_id, ftp_username, password, home_directory),
    )


@ftp.command(examples="  hostctl ftp passwd 2\n  hostctl ftp passwd 2 --password 'n3w pass'")
@click.argument("ftp_user_id", type=int)
@_password_option
@click.pass_obj
def passwd(app: AppContext, ftp_user_id: int, password: str) -> None:
    """Change an FTP account's password."""
    service = ChangeFtpPasswordService.from_panel(app.panel)
    app.run("change_ftp_password", lambda: service.execute(ftp_user_id, password))


@ftp.command(examples="  hostctl ftp delete 2")
@click.argument("ftp_user_id", type=int)
@click.pass_obj
def delete(app: AppContext, ftp_user_id: int) -> None:
    """Delete an FTP account."""
    service = DeleteFtpUserService.from_panel(app.panel)
    app.run("delete_ftp_user", lambda: service.execute(ftp_user_id))


@ftp.command(name="list", examples="  hostctl ftp list --user 1")
@click.option("--user", "user_id", type=int, default=None, help="Only this user's accounts.")
@click.pass_obj
def list_cmd(app: AppContext, user_id: int | None) -> None:
    """List FTP accounts."""
    inventory = InventoryService.from_panel(app.panel)
    app.run_listing("list_ftp_users", lambda: inventory.ftp_users(user_id), noun="FTP users")
