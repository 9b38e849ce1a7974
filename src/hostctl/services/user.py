"""Panel user accounts, the owners of every provisioned resource."""

from __future__ import annotations

from typing import TYPE_CHECKING

from werkzeug.security import generate_password_hash

from hostctl.domain.entities import User
from hostctl.domain.errors import ConflictError, NotFoundError
from hostctl.domain.validation import validate_email, validate_password, validate_username
from hostctl.services.base import BaseService

if TYPE_CHECKING:
    from hostctl.infrastructure.panel import Panel
    from hostctl.infrastructure.repositories.store import (
        CronJobRepository,
        DatabaseRepository,
        FtpUserRepository,
        SiteRepository,
        UserRepository,
    )


class CreateUserService(BaseService):
    def __init__(self, users: UserRepository) -> None:
        self._users = users

    @classmethod
    def from_panel(cls, panel: Panel) -> CreateUserService:
        return cls(panel.users)

    def execute(self, username: str, email: str, password: str) -> User:
        validate_username(username)
        validate_email(email)
        validate_password(password, min_length=8)

        if self._users.find_by_unique_key(username) is not None:
            raise ConflictError(f"User '{username}' already exists")
        if self._users.find_by_email(email) is not None:
            raise ConflictError(f"Email '{email}' is already registered")

        return self._users.create(
            User(username=username, email=email, password_hash=generate_password_hash(password))
        )


class DeleteUserService(BaseService):
    """Deletes a panel user that no longer owns any resources."""

    def __init__(
        self,
        users: UserRepository,
        sites: SiteRepository,
        databases: DatabaseRepository,
        ftp_users: FtpUserRepository,
        cron_jobs: CronJobRepository,
    ) -> None:
        self._users = users
        self._owned = {
            "sites": sites,
            "databases": databases,
            "ftp_users": ftp_users,
            "cron_jobs": cron_jobs,
        }

    @classmethod
    def from_panel(cls, panel: Panel) -> DeleteUserService:
        return cls(panel.users, panel.sites, panel.databases, panel.ftp_users, panel.cron_jobs)

    def execute(self, user_id: int) -> User:
        user = self._users.find(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        owned = {
            kind: len(repo.list_by(user_id=user_id)) for kind, repo in self._owned.items()
        }
        owned = {kind: count for kind, count in owned.items() if count}
        if owned:
            summary = ", ".join(f"{count} {kind}" for kind, count in owned.items())
            raise ConflictError(
                f"User '{user.username}' still owns resources: {summary}", detail=owned
            )
        self._users.delete(user_id)
        return user
