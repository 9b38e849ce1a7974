"""Audit trail of every sandboxed command.

Each invocation is emitted as a structlog event on the ``hostctl.audit``
logger and, when a path is configured, appended as one JSON line to the
audit file. Writing the audit file never changes a command's outcome.
"""

from __future__ import annotations

import getpass
import json
import logging
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import structlog

logger = logging.getLogger(__name__)

MAX_OUTPUT_CHARS = 2000


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


class AuditLog:
    """Append-only record of command invocations and failures."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._log = structlog.get_logger("hostctl.audit")
        self._user = _current_user()

    @property
    def path(self) -> Path | None:
        return self._path

    def record(
        self,
        command_line: str,
        *,
        privileged: bool,
        exit_code: int | None = None,
        timed_out: bool = False,
        output: str = "",
        rejected: str | None = None,
    ) -> None:
        """Record one invocation.

        *rejected* carries the reason when the sandbox refused to spawn.
        Output is stored only for failures and truncated.
        """
        failed = rejected is not None or timed_out or (exit_code not in (None, 0))
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "os_user": self._user,
            "privileged": privileged,
            "command": command_line,
            "exit_code": exit_code,
        }
        if timed_out:
            entry["timed_out"] = True
        if rejected is not None:
            entry["rejected"] = rejected
        if failed and output:
            entry["output"] = output[-MAX_OUTPUT_CHARS:]

        if rejected is not None:
            self._log.warning("command_rejected", **entry)
        elif failed:
            self._log.warning("command_failed", **entry)
        else:
            self._log.debug("command_run", **entry)

        if self._path is not None:
            self._append(entry)

    def _append(self, entry: dict[str, Any]) -> None:
        line = json.dumps(entry, separators=(",", ":"), sort_keys=True)
        try:
            with self._lock:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as fh:
                    fh.write(line + "\n")
        except OSError:
            logger.warning("Failed to write audit log %s", self._path, exc_info=True)
