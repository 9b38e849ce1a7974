"""MySQL databases and principals over an administrative connection.

Identifiers (database and user names) cannot be bound as parameters in
DDL, so they are reduced to ``[A-Za-z0-9_]`` and length-capped before being
interpolated between backticks. Values such as passwords and user hosts are
always bound parameters.

Creates never use ``IF NOT EXISTS``: an object already on the server is
reported as :class:`ResourceExistsError` so rollback leaves it alone.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from mysql.connector import errorcode
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError

from hostctl.domain.errors import OperationalError, ResourceExistsError
from hostctl.domain.validation import validate_privileges

if TYPE_CHECKING:
    from hostctl.config.models import MysqlConfig
    from hostctl.domain.entities import Database, DatabaseUser

logger = logging.getLogger(__name__)

MAX_DATABASE_NAME = 64
MAX_USERNAME = 32
_UNSAFE = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_database_name(name: str) -> str:
    """Safe database identifier: allowed charset, ``db_`` if it starts with a digit, 64 chars."""
    sanitized = _UNSAFE.sub("", name)
    if sanitized[:1].isdigit():
        sanitized = f"db_{sanitized}"
    sanitized = sanitized[:MAX_DATABASE_NAME]
    if not sanitized:
        raise OperationalError(f"Database name {name!r} is empty after sanitizing")
    return sanitized


def sanitize_username(name: str) -> str:
    sanitized = _UNSAFE.sub("", name)[:MAX_USERNAME]
    if not sanitized:
        raise OperationalError(f"Database username {name!r} is empty after sanitizing")
    return sanitized


def admin_engine(config: MysqlConfig) -> Engine:
    """Engine for the administrative MySQL connection (no default schema)."""
    url = URL.create(
        "mysql+mysqlconnector",
        username=config.user,
        password=config.password.get_secret_value() or None,
        host=config.host,
        port=config.port,
    )
    return create_engine(
        url,
        pool_pre_ping=True,
        connect_args={"connection_timeout": config.connect_timeout},
    )


class MysqlDatabaseAdapter:
    """Database adapter for MySQL / MariaDB."""

    def __init__(self, engine: Engine | None = None, *, config: MysqlConfig | None = None) -> None:
        if engine is None and config is None:
            raise ValueError("MysqlDatabaseAdapter needs an engine or a config")
        self._engine = engine
        self._config = config

    @property
    def engine(self) -> Engine:
        """The admin engine, created on first use so listing commands never connect."""
        if self._engine is None:
            assert self._config is not None
            self._engine = admin_engine(self._config)
        return self._engine

    # ------------------------------------------------------------------
    # Databases
    # ------------------------------------------------------------------

    def create_database(self, database: Database) -> bool:
        name = sanitize_database_name(database.name)
        return self._execute(
            f"create database {name}",
            (
                f"CREATE DATABASE `{name}` "
                "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci",
                {},
            ),
            exists_errno=errorcode.ER_DB_CREATE_EXISTS,
        )

    def delete_database(self, database: Database) -> bool:
        name = sanitize_database_name(database.name)
        return self._execute(f"drop database {name}", (f"DROP DATABASE IF EXISTS `{name}`", {}))

    # ------------------------------------------------------------------
    # Principals
    # ------------------------------------------------------------------

    def create_user(self, user: DatabaseUser, password: str) -> bool:
        username = sanitize_username(user.username)
        return self._execute(
            f"create user {username}",
            (
                "CREATE USER :username@:host IDENTIFIED BY :password",
                {"username": username, "host": user.host, "password": password},
            ),
            ("FLUSH PRIVILEGES", {}),
            exists_errno=errorcode.ER_CANNOT_USER,
        )

    def delete_user(self, user: DatabaseUser) -> bool:
        username = sanitize_username(user.username)
        return self._execute(
            f"drop user {username}",
            ("DROP USER IF EXISTS :username@:host", {"username": username, "host": user.host}),
            ("FLUSH PRIVILEGES", {}),
        )

    def grant_privileges(
        self, user: DatabaseUser, database: Database, privileges: list[str]
    ) -> bool:
        username = sanitize_username(user.username)
        name = sanitize_database_name(database.name)
        granted = ", ".join(validate_privileges(privileges))
        return self._execute(
            f"grant {granted} on {name} to {username}",
            (
                f"GRANT {granted} ON `{name}`.* TO :username@:host",
                {"username": username, "host": user.host},
            ),
            ("FLUSH PRIVILEGES", {}),
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _execute(
        self,
        action: str,
        *statements: tuple[str, dict[str, Any]],
        exists_errno: int | None = None,
    ) -> bool:
        """Run *statements* in one connection; wrap driver errors.

        A driver error numbered *exists_errno* means the object was already
        there and becomes :class:`ResourceExistsError`.
        """
        try:
            with self.engine.begin() as conn:
                for sql, params in statements:
                    conn.execute(text(sql), params)
        except SQLAlchemyError as exc:
            cause = getattr(exc, "orig", None) or exc
            logger.warning("MySQL %s failed: %s", action, cause)
            if exists_errno is not None and getattr(cause, "errno", None) == exists_errno:
                raise ResourceExistsError(f"MySQL {action} failed: {cause}") from exc
            raise OperationalError(f"MySQL {action} failed: {cause}") from exc
        logger.debug("MySQL %s done", action)
        return True
