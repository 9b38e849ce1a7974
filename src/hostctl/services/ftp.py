"""FTP account provisioning on the shared system principal."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hostctl.domain.entities import FtpUser
from hostctl.domain.errors import ConflictError, NotFoundError
from hostctl.domain.naming import owner_directory
from hostctl.domain.validation import (
    validate_ftp_username,
    validate_home_directory,
    validate_password,
)
from hostctl.services.base import BaseService

if TYPE_CHECKING:
    from hostctl.infrastructure.adapters.contracts import FtpManager
    from hostctl.infrastructure.panel import Panel
    from hostctl.infrastructure.repositories.store import FtpUserRepository, UserRepository

logger = logging.getLogger(__name__)


class CreateFtpUserService(BaseService):
    """Creates an FTP account confined to a directory under the sites root.

    Without an explicit home directory the account is rooted at the owner's
    directory, so it reaches every site of that panel user.
    """

    def __init__(
        self,
        ftp_users: FtpUserRepository,
        users: UserRepository,
        manager: FtpManager,
        *,
        sites_root: str,
    ) -> None:
        self._ftp_users = ftp_users
        self._users = users
        self._manager = manager
        self._sites_root = sites_root

    @classmethod
    def from_panel(cls, panel: Panel) -> CreateFtpUserService:
        return cls(
            panel.ftp_users, panel.users, panel.ftp, sites_root=panel.settings.panel.sites_root
        )

    def execute(
        self,
        user_id: int,
        ftp_username: str,
        password: str,
        home_directory: str | None = None,
    ) -> FtpUser:
        validate_ftp_username(ftp_username)
        validate_password(password)
        if home_directory is not None:
            home_directory = validate_home_directory(home_directory, self._sites_root)

        if self._ftp_users.find_by_unique_key(ftp_username) is not None:
            raise ConflictError(f"FTP user '{ftp_username}' already exists")

        user = self._users.find(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        home = home_directory or owner_directory(self._sites_root, user.username)

        logger.info("Provisioning FTP user %s", ftp_username)
        with self._provisioning("Failed to create FTP user infrastructure") as txn:
            ftp_user = txn.persist(
                self._ftp_users,
                FtpUser(user_id=user_id, username=ftp_username, home_directory=home),
            )
            txn.step(
                "create FTP account",
                lambda: self._manager.create_user(ftp_user, password),
                undo=lambda: self._manager.delete_user(ftp_user),
            )
        return ftp_user


class DeleteFtpUserService(BaseService):
    def __init__(self, ftp_users: FtpUserRepository, manager: FtpManager) -> None:
        self._ftp_users = ftp_users
        self._manager = manager

    @classmethod
    def from_panel(cls, panel: Panel) -> DeleteFtpUserService:
        return cls(panel.ftp_users, panel.ftp)

    def execute(self, ftp_user_id: int) -> FtpUser:
        ftp_user = self._ftp_users.find(ftp_user_id)
        if ftp_user is None:
            raise NotFoundError(f"FTP user {ftp_user_id} not found")

        with self._provisioning("Failed to delete FTP user") as txn:
            txn.step("delete FTP account", lambda: self._manager.delete_user(ftp_user))
            txn.step("delete FTP user record", lambda: self._ftp_users.delete(ftp_user_id))
        return ftp_user


class ChangeFtpPasswordService(BaseService):
    def __init__(self, ftp_users: FtpUserRepository, manager: FtpManager) -> None:
        self._ftp_users = ftp_users
        self._manager = manager

    @classmethod
    def from_panel(cls, panel: Panel) -> ChangeFtpPasswordService:
        return cls(panel.ftp_users, panel.ftp)

    def execute(self, ftp_user_id: int, password: str) -> FtpUser:
        validate_password(password)
        ftp_user = self._ftp_users.find(ftp_user_id)
        if ftp_user is None:
            raise NotFoundError(f"FTP user {ftp_user_id} not found")

        with self._provisioning("Failed to change FTP password") as txn:
            txn.step(
                "change FTP password",
                lambda: self._manager.change_password(ftp_user, password),
            )
        return ftp_user
