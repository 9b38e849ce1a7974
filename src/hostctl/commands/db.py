"""Command group: databases and their users."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from hostctl.commands._base import HostGroup
from hostctl.services.database import CreateDatabaseService, DeleteDatabaseService
from hostctl.services.inventory import InventoryService

if TYPE_CHECKING:
    from hostctl.commands._context import AppContext

_DB_EXAMPLES = """\
  hostctl db create 1 shop_db
  hostctl db create 1 shop_db --db-user shop_user --db-password 's3cret!'
  hostctl db create 1 report_db --db-user reader --db-password pw123456 -p SELECT -p 'SHOW VIEW'
  hostctl db list --user 1
  hostctl db delete 2"""


@click.group(cls=HostGroup, examples=_DB_EXAMPLES)
def db() -> None:
    """Provision and remove databases."""


@db.command(
    examples="""\
  hostctl db create 1 shop_db
  hostctl db create 1 shop_db --db-user shop_user --db-password 's3cret!'"""
)
@click.argument("user_id", type=int)
@click.argument("db_name")
@click.option("--type", "db_type", default="mysql", show_default=True, help="Database engine.")
@click.option("--db-user", "db_username", default=None, help="Create this database user too.")
@click.option(
    "--db-password",
    default=None,
    envvar="HOSTCTL_DB_PASSWORD",
    help="Password for --db-user (or HOSTCTL_DB_PASSWORD).",
)
@click.option(
    "-p",
    "--privilege",
    "privileges",
    multiple=True,
    help="Privilege to grant (repeatable, default ALL PRIVILEGES).",
)
@click.pass_obj
def create(
    app: AppContext,
    user_id: int,
    db_name: str,
    db_type: str,
    db_username: str | None,
    db_password: str | None,
    privileges: tuple[str, ...],
) -> None:
    """Create database DB_NAME owned by USER_ID."""
    service = CreateDatabaseService.from_panel(app.panel)
    app.run(
        "create_database",
        lambda: service.execute(
            user_id,
            db_name,
            db_type,
            db_username=db_username,
            db_password=db_password,
            privileges=list(privileges) or None,
        ),
    )


@db.command(examples="  hostctl db delete 2")
@click.argument("database_id", type=int)
@click.pass_obj
def delete(app: AppContext, database_id: int) -> None:
    """Drop a database and its users."""
    service = DeleteDatabaseService.from_panel(app.panel)
    app.run("delete_database", lambda: service.execute(database_id))


@db.command(name="list", examples="  hostctl db list\n  hostctl db list --user 1")
@click.option("--user", "user_id", type=int, default=None, help="Only this user's databases.")
@click.pass_obj
def list_cmd(app: AppContext, user_id: int | None) -> None:
    """List databases with their users."""
    inventory = InventoryService.from_panel(app.panel)

    def rows() -> list[dict[str, object]]:
        return [
            {
                **database.model_dump(mode="json"),
                "users": ", ".join(inventory.database_users(database.id or 0)),
            }
            for database in inventory.databases(user_id)
        ]

    app.run_listing(
        "list_databases",
        rows,
        noun="databases",
        columns=["id", "user_id", "name", "type", "users"],
    )
