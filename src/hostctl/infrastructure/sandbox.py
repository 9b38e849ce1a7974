"""CommandSandbox: the only path from hostctl to the operating system shell.

Commands are checked before anything is spawned:

- The program name may not contain whitespace or shell metacharacters.
  Variable data must travel in ``args``.
- The program must be on :data:`ALLOWED_COMMANDS`; privileged calls must
  also be on :data:`PRIVILEGED_COMMANDS`.
- Every argument is shell-quoted on its own, so the shell parses each
  back into exactly one token.

A refused command raises :class:`SecurityError`. A command that runs and
exits non-zero is *data*: it comes back as a :class:`CommandResult` and
the caller decides whether that is fatal.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
import subprocess
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from hostctl.domain.errors import SecurityError
from hostctl.infrastructure.audit import AuditLog

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from hostctl.config.settings import HostSettings

logger = logging.getLogger(__name__)

ALLOWED_COMMANDS: frozenset[str] = frozenset(
    {
        # process manager
        "systemctl",
        # user management
        "useradd",
        "usermod",
        "userdel",
        "id",
        # filesystem
        "mkdir",
        "chown",
        "chmod",
        "ln",
        "rm",
        "cp",
        "mv",
        "cat",
        "touch",
        "test",
        # scheduler, database clients, FTP, DNS
        "crontab",
        "mysql",
        "psql",
        "pure-pw",
        "pdns_control",
        "named-checkzone",
        "named-checkconf",
        "rndc",
        # web server
        "nginx",
    }
)

PRIVILEGED_COMMANDS: frozenset[str] = frozenset(
    {
        "systemctl",
        "useradd",
        "usermod",
        "userdel",
        "mkdir",
        "chown",
        "chmod",
        "ln",
        "rm",
        "cp",
        "mv",
        "crontab",
        "pure-pw",
        "nginx",
        "rndc",
    }
)

SHELL_METACHARACTERS = re.compile(r"[\s;|&$`<>(){}\[\]\\]")

# Exit status reported for a command killed by the timeout (as coreutils timeout(1)).
TIMEOUT_EXIT_CODE = 124


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one spawned command (stdout and stderr combined)."""

    output: str
    exit_code: int
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


class CommandSandbox:
    """Validates, escapes, audits, and runs allowlisted commands.

    Args:
        sudo: Prefix for privileged commands, e.g. ``["sudo", "-n"]``.
            Empty when hostctl already runs as root.
        timeout: Seconds before a spawned command is killed.
        audit: Where invocations are recorded.
        temp_dir: Directory for private temp files (default: system temp).
    """

    def __init__(
        self,
        *,
        sudo: Sequence[str] = ("sudo", "-n"),
        timeout: float = 30.0,
        audit: AuditLog | None = None,
        temp_dir: Path | None = None,
    ) -> None:
        self._sudo = list(sudo)
        self._timeout = timeout
        self._audit = audit or AuditLog()
        self._temp_dir = temp_dir

    @classmethod
    def from_settings(cls, settings: HostSettings) -> CommandSandbox:
        cfg = settings.sandbox
        return cls(
            sudo=cfg.sudo,
            timeout=cfg.timeout_seconds,
            audit=AuditLog(cfg.audit_log),
            temp_dir=cfg.temp_dir,
        )

    @property
    def timeout(self) -> float:
        return self._timeout

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(
        self, command: str, args: Sequence[str] = (), *, stdin: Path | None = None
    ) -> CommandResult:
        """Run an allowlisted command as the current OS user."""
        return self._execute(command, args, privileged=False, stdin=stdin)

    def run_privileged(
        self, command: str, args: Sequence[str] = (), *, stdin: Path | None = None
    ) -> CommandResult:
        """Run a command with elevated privileges.

        Fails closed: a command on the general allowlist but not on the
        privileged list raises :class:`SecurityError`.
        """
        return self._execute(command, args, privileged=True, stdin=stdin)

    def write_file(
        self,
        path: str | Path,
        content: str,
        *,
        mode: str = "644",
        owner: str | None = None,
    ) -> CommandResult:
        """Install *content* at the privileged *path*.

        The content goes to a private temp file, is copied next to the
        destination, gets its mode (and owner), and is then moved into
        place, so the destination is never observed half-written.
        Returns the first failing step's result, or the final move's.
        """
        destination = str(path)
        staging = f"{destination}.hostctl-new"
        with self.private_tempfile(content) as tmp:
            steps: list[tuple[str, list[str]]] = [
                ("cp", [str(tmp), staging]),
                ("chmod", [mode, staging]),
            ]
            if owner:
                steps.append(("chown", [owner, staging]))
            steps.append(("mv", ["-f", staging, destination]))

            result = CommandResult(output="", exit_code=0)
            for command, args in steps:
                result = self.run_privileged(command, args)
                if not result.ok:
                    self.run_privileged("rm", ["-f", staging])
                    return result
            return result

    @staticmethod
    def escape_arg(arg: str) -> str:
        """Quote *arg* for a POSIX shell as exactly one token."""
        return shlex.quote(arg)

    def build_command_line(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        privileged: bool = False,
        stdin: Path | None = None,
    ) -> str:
        """Validate and assemble the final shell command line."""
        self._check(command, args, privileged=privileged)
        parts = [*self._sudo] if privileged else []
        parts.append(command)
        parts.extend(args)
        line = " ".join(self.escape_arg(p) for p in parts)
        if stdin is not None:
            line = f"{line} < {self.escape_arg(str(stdin))}"
        return line

    @contextmanager
    def private_tempfile(self, content: str) -> Iterator[Path]:
        """Yield a 0600 temp file holding *content*; always removed afterwards."""
        fd, name = tempfile.mkstemp(prefix="hostctl-", dir=self._temp_dir)
        path = Path(name)
        try:
            os.fchmod(fd, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(content)
            yield path
        finally:
            path.unlink(missing_ok=True)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _check(self, command: str, args: Sequence[str], *, privileged: bool) -> None:
        reason: str | None = None
        if not command or SHELL_METACHARACTERS.search(command):
            reason = "command name contains whitespace or shell metacharacters"
        elif command not in ALLOWED_COMMANDS:
            reason = "command is not allowlisted"
        elif privileged and command not in PRIVILEGED_COMMANDS:
            reason = "command is not allowed to run privileged"
        elif any("\x00" in a for a in args):
            reason = "argument contains a NUL byte"

        if reason is not None:
            self._audit.record(
                " ".join([command, *args]).replace("\x00", "\\0"),
                privileged=privileged,
                rejected=reason,
            )
            raise SecurityError(
                f"Refused to run {command!r}: {reason}",
                detail={"command": command, "privileged": privileged},
            )

    def _execute(
        self,
        command: str,
        args: Sequence[str],
        *,
        privileged: bool,
        stdin: Path | None,
    ) -> CommandResult:
        command_line = self.build_command_line(command, args, privileged=privileged, stdin=stdin)
        result = self._spawn(command_line)
        self._audit.record(
            command_line,
            privileged=privileged,
            exit_code=result.exit_code,
            timed_out=result.timed_out,
            output=result.output,
        )
        return result

    def _spawn(self, command_line: str) -> CommandResult:
        """Run *command_line* through ``/bin/sh`` with the configured timeout."""
        try:
            completed = subprocess.run(
                command_line,
                shell=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                text=True,
                errors="replace",
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            partial = exc.output or ""
            if isinstance(partial, bytes):
                partial = partial.decode("utf-8", errors="replace")
            logger.warning("Command timed out after %ss: %s", self._timeout, command_line)
            return CommandResult(output=partial, exit_code=TIMEOUT_EXIT_CODE, timed_out=True)
        except OSError as exc:
            return CommandResult(output=str(exc), exit_code=127)
        return CommandResult(output=completed.stdout or "", exit_code=completed.returncode)
