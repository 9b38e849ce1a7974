"""Jobs in the shared system crontab.

The crontab of the panel's system user holds every panel user's jobs,
each preceded by an ownership tag (see :mod:`hostctl.domain.crontab`).
Edits read the whole crontab, change it, and install it again while
holding the crontab's lock.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from hostctl.domain import crontab
from hostctl.domain.errors import OperationalError
from hostctl.infrastructure.adapters._helpers import require_ok

if TYPE_CHECKING:
    from collections.abc import Callable

    from hostctl.domain.entities import CronJob
    from hostctl.infrastructure.locks import FileLocks
    from hostctl.infrastructure.sandbox import CommandSandbox

_NO_CRONTAB = re.compile(r"no crontab for", re.IGNORECASE)


class CronAdapter:
    """Scheduler adapter for cron."""

    def __init__(self, sandbox: CommandSandbox, locks: FileLocks, *, system_user: str) -> None:
        self._sandbox = sandbox
        self._locks = locks
        self._system_user = system_user

    @property
    def lock_key(self) -> str:
        return f"crontab:{self._system_user}"

    def create_job(self, owner: str, job: CronJob) -> bool:
        """Install *job*; disabled jobs are not written at all."""
        if not job.enabled:
            return True
        self._edit(lambda text: crontab.add_job(text, job, owner))
        return True

    def update_job(self, owner: str, job: CronJob) -> bool:
        """Replace *job*'s line; disabling a job removes it."""
        if job.enabled:
            self._edit(lambda text: crontab.add_job(text, job, owner))
        else:
            self._edit(lambda text: crontab.remove_job(text, job))
        return True

    def delete_job(self, job: CronJob) -> bool:
        self._edit(lambda text: crontab.remove_job(text, job))
        return True

    def list_jobs(self, owner: str | None = None) -> list[str]:
        """Job lines in the crontab, optionally only those tagged for *owner*."""
        entries = crontab.parse_entries(self._read())
        return [e.line.strip() for e in entries if owner is None or e.user == owner]

    def _read(self) -> str:
        result = self._sandbox.run_privileged("crontab", ["-u", self._system_user, "-l"])
        if result.ok:
            return result.output
        if _NO_CRONTAB.search(result.output):
            return ""
        raise OperationalError(
            f"Failed to read crontab of {self._system_user}: {result.output.strip()}",
            detail={"exit_code": result.exit_code, "timed_out": result.timed_out},
        )

    def _edit(self, change: Callable[[str], str]) -> None:
        with self._locks.hold(self.lock_key):
            updated = change(self._read())
            with self._sandbox.private_tempfile(updated) as new_crontab:
                require_ok(
                    self._sandbox.run_privileged(
                        "crontab", ["-u", self._system_user, str(new_crontab)]
                    ),
                    f"Failed to install crontab of {self._system_user}",
                )
