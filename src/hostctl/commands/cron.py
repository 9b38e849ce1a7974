"""Command group: cron jobs."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from hostctl.commands._base import HostGroup
from hostctl.services.cron import (
    CreateCronJobService,
    DeleteCronJobService,
    UpdateCronJobService,
)
from hostctl.services.inventory import InventoryService

if TYPE_CHECKING:
    from hostctl.commands._context import AppContext

_CRON_EXAMPLES = """\
  hostctl cron create 1 '*/5 * * * *' 'php /srv/hostctl/sites/alice/example.com/cron.php'
  hostctl cron create 1 '0 3 * * sun' '/usr/local/bin/backup' --disabled
  hostctl cron enable 3
  hostctl cron disable 3
  hostctl cron list --user 1"""


@click.group(cls=HostGroup, examples=_CRON_EXAMPLES)
def cron() -> None:
    """Manage scheduled jobs."""


@cron.command(
    examples="""\
  hostctl cron create 1 '*/5 * * * *' 'php /srv/hostctl/sites/alice/example.com/cron.php'"""
)
@click.argument("user_id", type=int)
@click.argument("schedule")
@click.argument("command")
@click.option("--disabled", is_flag=True, help="Record the job without installing it.")
@click.pass_obj
def create(app: AppContext, user_id: int, schedule: str, command: str, disabled: bool) -> None:
    """Create a job running COMMAND on SCHEDULE for USER_ID."""
    service = CreateCronJobService.from_panel(app.panel)
    app.run(
        "create_cron_job",
        lambda: service.execute(user_id, schedule, command, enabled=not disabled),
    )


@cron.command(examples="  hostctl cron enable 3")
@click.argument("job_id", type=int)
@click.pass_obj
def enable(app: AppContext, job_id: int) -> None:
    """Install a disabled job in the crontab."""
    service = UpdateCronJobService.from_panel(app.panel)
    app.run("enable_cron_job", lambda: service.set_enabled(job_id, True))


@cron.command(examples="  hostctl cron disable 3")
@click.argument("job_id", type=int)
@click.pass_obj
def disable(app: AppContext, job_id: int) -> None:
    """Remove a job from the crontab but keep its record."""
    service = UpdateCronJobService.from_panel(app.panel)
    app.run("disable_cron_job", lambda: service.set_enabled(job_id, False))


@cron.command(examples="  hostctl cron delete 3")
@click.argument("job_id", type=int)
@click.pass_obj
def delete(app: AppContext, job_id: int) -> None:
    """Delete a job."""
    service = DeleteCronJobService.from_panel(app.panel)
    app.run("delete_cron_job", lambda: service.execute(job_id))


@cron.command(name="list", examples="  hostctl cron list\n  hostctl cron list --user 1")
@click.option("--user", "user_id", type=int, default=None, help="Only this user's jobs.")
@click.pass_obj
def list_cmd(app: AppContext, user_id: int | None) -> None:
    """List cron jobs."""
    inventory = InventoryService.from_panel(app.panel)
    app.run_listing("list_cron_jobs", lambda: inventory.cron_jobs(user_id), noun="cron jobs")
