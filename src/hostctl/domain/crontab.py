"""Text rules for the shared crontab.

All panel users' jobs live in one system crontab. Each job line is preceded
by an ownership tag so jobs can coexist and be removed individually::

    # hostctl job=12 user=alice
    */5 * * * * php /srv/sites/alice/example.com/public_html/cron.php
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from hostctl.domain.entities import CronJob

TAG_PREFIX = "# hostctl"
TAG_RE = re.compile(r"^# hostctl job=(?P<job_id>\d+) user=(?P<user>\S+)\s*$")


@dataclass(frozen=True)
class CrontabEntry:
    """One job line of the crontab with its ownership tag, if any."""

    schedule: str
    command: str
    job_id: int | None = None
    user: str | None = None

    @property
    def line(self) -> str:
        return f"{self.schedule} {self.command}"


def ownership_tag(job: CronJob, owner: str) -> str:
    return f"{TAG_PREFIX} job={job.id} user={owner}"


def job_line(job: CronJob) -> str:
    return f"{job.schedule} {job.command}"


def add_job(crontab: str, job: CronJob, owner: str) -> str:
    """Append *job* with its ownership tag, replacing any earlier copy of it."""
    lines = _remove_lines(crontab.splitlines(), job)
    lines.extend([ownership_tag(job, owner), job_line(job)])
    return "\n".join(lines) + "\n"


def remove_job(crontab: str, job: CronJob) -> str:
    """Remove *job*'s tagged line; other jobs, tagged or not, are kept."""
    lines = _remove_lines(crontab.splitlines(), job)
    return "\n".join(lines) + "\n" if lines else ""


def parse_entries(crontab: str) -> list[CrontabEntry]:
    """Parse job lines, attaching the ownership tag that precedes each one."""
    entries: list[CrontabEntry] = []
    pending: re.Match[str] | None = None
    for raw in crontab.splitlines():
        line = raw.strip()
        if not line:
            continue
        tag = TAG_RE.match(line)
        if tag:
            pending = tag
            continue
        if line.startswith("#"):
            continue
        parts = line.split(None, 5)
        # Environment assignments and @reboot-style lines are kept verbatim.
        if len(parts) < 6 or "=" in parts[0] or parts[0].startswith("@"):
            schedule, command = "", line
        else:
            schedule, command = " ".join(parts[:5]), parts[5]
        entries.append(
            CrontabEntry(
                schedule=schedule,
                command=command,
                job_id=int(pending.group("job_id")) if pending else None,
                user=pending.group("user") if pending else None,
            )
        )
        pending = None
    return entries


def _remove_lines(lines: list[str], job: CronJob) -> list[str]:
    """Drop the tag of *job* and the following line when it carries the command."""
    kept: list[str] = []
    skip_next = False
    for line in lines:
        if skip_next:
            skip_next = False
            if job.command in line:
                continue
        tag = TAG_RE.match(line.strip())
        if tag and job.id is not None and int(tag.group("job_id")) == job.id:
            skip_next = True
            continue
        kept.append(line)
    return kept
