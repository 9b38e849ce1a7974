"""Database provisioning and teardown.

Pipeline: VALIDATE → CHECK NAMES → RESOLVE OWNER → PERSIST DATABASE →
CREATE DATABASE → [PERSIST DB USER → CREATE USER → GRANT]
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hostctl.domain.entities import Database, DatabaseUser
from hostctl.domain.errors import ConflictError, NotFoundError, ValidationError
from hostctl.domain.types import DatabaseEngine
from hostctl.domain.validation import (
    validate_database_name,
    validate_database_username,
    validate_password,
    validate_privileges,
)
from hostctl.services.base import BaseService

if TYPE_CHECKING:
    from hostctl.infrastructure.adapters.contracts import DatabaseManager
    from hostctl.infrastructure.panel import Panel
    from hostctl.infrastructure.repositories.store import (
        DatabaseRepository,
        DatabaseUserRepository,
        UserRepository,
    )

logger = logging.getLogger(__name__)

DEFAULT_PRIVILEGES = ["ALL PRIVILEGES"]


class CreateDatabaseService(BaseService):
    """Creates a database and, optionally, a user granted privileges on it."""

    def __init__(
        self,
        databases: DatabaseRepository,
        database_users: DatabaseUserRepository,
        users: UserRepository,
        manager: DatabaseManager,
        *,
        engines: frozenset[DatabaseEngine] = frozenset({DatabaseEngine.MYSQL}),
    ) -> None:
        self._databases = databases
        self._database_users = database_users
        self._users = users
        self._manager = manager
        self._engines = engines

    @classmethod
    def from_panel(cls, panel: Panel) -> CreateDatabaseService:
        return cls(panel.databases, panel.database_users, panel.users, panel.database_manager)

    def execute(
        self,
        user_id: int,
        db_name: str,
        db_type: str = "mysql",
        db_username: str | None = None,
        db_password: str | None = None,
        privileges: list[str] | None = None,
    ) -> Database:
        validate_database_name(db_name)
        engine = self._engine(db_type)
        granted = validate_privileges(privileges or DEFAULT_PRIVILEGES)
        if db_username:
            validate_database_username(db_username)
            if not db_password:
                raise ValidationError(
                    "A password is required when creating a database user",
                    detail={"field": "db_password"},
                )
            validate_password(db_password, field="db_password")

        if self._databases.find_by_unique_key(db_name) is not None:
            raise ConflictError(f"Database '{db_name}' already exists")
        if db_username and self._database_users.find_by_unique_key(db_username) is not None:
            raise ConflictError(f"Database user '{db_username}' already exists")

        if self._users.find(user_id) is None:
            raise NotFoundError(f"User {user_id} not found")

        logger.info("Provisioning database %s", db_name)
        with self._provisioning("Failed to create database infrastructure") as txn:
            database = txn.persist(
                self._databases, Database(user_id=user_id, name=db_name, type=engine)
            )
            txn.step(
                "create database",
                lambda: self._manager.create_database(database),
                undo=lambda: self._manager.delete_database(database),
            )
            if db_username:
                password = db_password or ""
                db_user = txn.persist(
                    self._database_users,
                    DatabaseUser(database_id=database.id, username=db_username),
                )
                txn.step(
                    "create database user",
                    lambda: self._manager.create_user(db_user, password),
                    undo=lambda: self._manager.delete_user(db_user),
                )
                txn.step(
                    "grant privileges",
                    lambda: self._manager.grant_privileges(db_user, database, granted),
                )
        return database

    def _engine(self, db_type: str) -> DatabaseEngine:
        try:
            engine = DatabaseEngine(db_type.lower())
        except ValueError as exc:
            raise ValidationError(
                f"Unknown database engine: {db_type!r}", detail={"field": "db_type"}
            ) from exc
        if engine not in self._engines:
            raise ValidationError(
                f"Database engine {engine} is not available on this server",
                detail={"field": "db_type"},
            )
        return engine


class DeleteDatabaseService(BaseService):
    """Drops a database's users and the database, then its store record."""

    def __init__(
        self,
        databases: DatabaseRepository,
        database_users: DatabaseUserRepository,
        manager: DatabaseManager,
    ) -> None:
        self._databases = databases
        self._database_users = database_users
        self._manager = manager

    @classmethod
    def from_panel(cls, panel: Panel) -> DeleteDatabaseService:
        return cls(panel.databases, panel.database_users, panel.database_manager)

    def execute(self, database_id: int) -> Database:
        database = self._databases.find(database_id)
        if database is None:
            raise NotFoundError(f"Database {database_id} not found")

        with self._provisioning("Failed to delete database infrastructure") as txn:
            for db_user in self._database_users.list_by(database_id=database_id):
                txn.step(
                    f"drop user {db_user.username}",
                    lambda u=db_user: self._manager.delete_user(u),
                )
            txn.step("drop database", lambda: self._manager.delete_database(database))
            txn.step("delete database record", lambda: self._databases.delete(database_id))
        return database
