"""Cron job provisioning in the shared system crontab."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hostctl.domain.entities import CronJob, User
from hostctl.domain.errors import NotFoundError
from hostctl.domain.validation import validate_cron_command, validate_cron_schedule
from hostctl.services.base import BaseService

if TYPE_CHECKING:
    from hostctl.infrastructure.adapters.contracts import CronManager
    from hostctl.infrastructure.panel import Panel
    from hostctl.infrastructure.repositories.store import CronJobRepository, UserRepository

logger = logging.getLogger(__name__)


class _CronService(BaseService):
    def __init__(
        self, cron_jobs: CronJobRepository, users: UserRepository, manager: CronManager
    ) -> None:
        self._cron_jobs = cron_jobs
        self._users = users
        self._manager = manager

    @classmethod
    def from_panel(cls, panel: Panel) -> _CronService:
        return cls(panel.cron_jobs, panel.users, panel.cron)

    def _owner(self, user_id: int) -> User:
        user = self._users.find(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def _job(self, job_id: int) -> CronJob:
        job = self._cron_jobs.find(job_id)
        if job is None:
            raise NotFoundError(f"Cron job {job_id} not found")
        return job


class CreateCronJobService(_CronService):
    """Records a job and installs it, unless it is created disabled."""

    def execute(
        self, user_id: int, schedule: str, command: str, enabled: bool = True
    ) -> CronJob:
        schedule = validate_cron_schedule(schedule)
        command = validate_cron_command(command)
        owner = self._owner(user_id)

        with self._provisioning("Failed to create cron job") as txn:
            job = txn.persist(
                self._cron_jobs,
                CronJob(user_id=user_id, schedule=schedule, command=command, enabled=enabled),
            )
            if enabled:
                txn.step(
                    "install crontab entry",
                    lambda: self._manager.create_job(owner.username, job),
                    undo=lambda: self._manager.delete_job(job),
                )
        return job


class UpdateCronJobService(_CronService):
    """Enables or disables a job; a disabled job has no crontab line."""

    def set_enabled(self, job_id: int, enabled: bool) -> CronJob:
        job = self._job(job_id)
        if job.enabled == enabled:
            return job
        owner = self._owner(job.user_id)
        updated = job.model_copy(update={"enabled": enabled})

        action = "enable" if enabled else "disable"
        with self._provisioning(f"Failed to {action} cron job") as txn:
            txn.on_rollback("restore cron job record", lambda: self._cron_jobs.update(job))
            self._cron_jobs.update(updated)
            txn.step(
                "update crontab entry",
                lambda: self._manager.update_job(owner.username, updated),
                undo=lambda: self._manager.update_job(owner.username, job),
            )
        return updated


class DeleteCronJobService(_CronService):
    def execute(self, job_id: int) -> CronJob:
        job = self._job(job_id)
        with self._provisioning("Failed to delete cron job") as txn:
            txn.step("remove crontab entry", lambda: self._manager.delete_job(job))
            txn.step("delete cron job record", lambda: self._cron_jobs.delete(job_id))
        return job
