"""Pure-FTPd virtual users managed with ``pure-pw``.

All FTP accounts map to the panel's shared system user, so files uploaded
over FTP have the same ownership as the sites themselves. Passwords are
fed to ``pure-pw`` on stdin from a private temp file and never appear on
a command line.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from hostctl.domain.errors import ResourceExistsError
from hostctl.infrastructure.adapters._helpers import require_ok

if TYPE_CHECKING:
    from hostctl.domain.entities import FtpUser
    from hostctl.infrastructure.sandbox import CommandSandbox


class PureFtpdAdapter:
    """FTP adapter for Pure-FTPd's PureDB."""

    def __init__(self, sandbox: CommandSandbox, *, system_user: str, commit: bool = True) -> None:
        self._sandbox = sandbox
        self._system_user = system_user
        self._commit = ["-m"] if commit else []
        self._ids: tuple[str, str] | None = None

    def system_ids(self) -> tuple[str, str]:
        """``(uid, gid)`` of the shared system user, resolved once."""
        if self._ids is None:
            uid = require_ok(
                self._sandbox.run("id", ["-u", self._system_user]),
                f"Failed to get UID for {self._system_user}",
            ).output.strip()
            gid = require_ok(
                self._sandbox.run("id", ["-g", self._system_user]),
                f"Failed to get GID for {self._system_user}",
            ).output.strip()
            self._ids = (uid, gid)
        return self._ids

    def create_user(self, user: FtpUser, password: str) -> bool:
        if self._sandbox.run_privileged("pure-pw", ["show", user.username]).ok:
            raise ResourceExistsError(f"FTP account {user.username} already exists")
        uid, gid = self.system_ids()
        args = ["useradd", user.username, "-u", uid, "-g", gid, "-d", user.home_directory]
        with self._sandbox.private_tempfile(_password_input(password)) as secret:
            result = self._sandbox.run_privileged("pure-pw", [*args, *self._commit], stdin=secret)
        require_ok(result, "Failed to create FTP user")
        return True

    def update_user(self, user: FtpUser) -> bool:
        result = self._sandbox.run_privileged(
            "pure-pw", ["usermod", user.username, "-d", user.home_directory, *self._commit]
        )
        require_ok(result, "Failed to update FTP user")
        return True

    def delete_user(self, user: FtpUser) -> bool:
        result = self._sandbox.run_privileged("pure-pw", ["userdel", user.username, *self._commit])
        require_ok(result, "Failed to delete FTP user")
        return True

    def change_password(self, user: FtpUser, password: str) -> bool:
        with self._sandbox.private_tempfile(_password_input(password)) as secret:
            result = self._sandbox.run_privileged(
                "pure-pw", ["passwd", user.username, *self._commit], stdin=secret
            )
        require_ok(result, "Failed to change FTP password")
        return True


def _password_input(password: str) -> str:
    # pure-pw prompts for the password twice.
    return f"{password}\n{password}\n"
