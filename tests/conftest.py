"""Shared pytest fixtures and test helpers for hostctl tests."""

from __future__ import annotations

import os
import re
import shlex
import shutil
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from hostctl.config.models import (
    BindConfig,
    NginxConfig,
    PanelConfig,
    PhpConfig,
    SandboxConfig,
)
from hostctl.config.settings import HostSettings
from hostctl.domain.entities import Database, DatabaseUser, Site, User
from hostctl.domain.errors import ResourceExistsError
from hostctl.infrastructure.audit import AuditLog
from hostctl.infrastructure.database.engine import init_database
from hostctl.infrastructure.panel import Panel
from hostctl.infrastructure.sandbox import CommandResult, CommandSandbox

PHP_VERSIONS = ["8.2", "8.3"]

# ---------------------------------------------------------------------------
# Scripted sandbox
# ---------------------------------------------------------------------------

_SERIAL = re.compile(r"(\d{10})\s*;\s*Serial")


class ScriptedSandbox(CommandSandbox):
    """A real CommandSandbox whose process spawn is interpreted in-process.

    Validation, quoting, auditing and ``write_file`` staging all run for
    real; only ``_spawn`` is replaced. Filesystem commands act on the real
    paths (which tests point into ``tmp_path``); daemons (crontab, pure-pw,
    id) are simulated with in-memory state.
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.calls: list[list[str]] = []
        self.privileged_calls: list[list[str]] = []
        self.crontabs: dict[str, str] = {}
        self.ftp_accounts: dict[str, dict[str, str]] = {}
        self.system_ids = {"-u": "1001", "-g": "1001"}
        self._failures: list[tuple[Callable[[list[str]], bool], CommandResult]] = []

    # -- test controls ------------------------------------------------------

    def fail_when(
        self,
        predicate: Callable[[list[str]], bool],
        *,
        output: str = "simulated failure",
        exit_code: int = 1,
        timed_out: bool = False,
    ) -> None:
        """Make every command whose argv satisfies *predicate* fail."""
        result = CommandResult(output=output, exit_code=exit_code, timed_out=timed_out)
        self._failures.append((predicate, result))

    def fail_on(self, *prefix: str, **kwargs: Any) -> None:
        """Make every command whose argv starts with *prefix* fail."""
        self.fail_when(lambda argv: argv[: len(prefix)] == list(prefix), **kwargs)

    def clear_failures(self) -> None:
        self._failures.clear()

    def commands(self, name: str | None = None) -> list[list[str]]:
        return [argv for argv in self.calls if name is None or argv[0] == name]

    # -- spawn --------------------------------------------------------------

    def _spawn(self, command_line: str) -> CommandResult:
        tokens = shlex.split(command_line)
        stdin: Path | None = None
        if len(tokens) >= 2 and tokens[-2] == "<":
            stdin = Path(tokens[-1])
            tokens = tokens[:-2]
        privileged = bool(self._sudo) and tokens[: len(self._sudo)] == self._sudo
        argv = tokens[len(self._sudo) :] if privileged else tokens
        self.calls.append(argv)
        if privileged:
            self.privileged_calls.append(argv)

        for predicate, result in self._failures:
            if predicate(argv):
                return result

        handler = getattr(self, "_cmd_" + argv[0].replace("-", "_"), None)
        if handler is None:
            return CommandResult(output="", exit_code=0)
        try:
            return handler(argv[1:], stdin)
        except OSError as exc:
            return CommandResult(output=f"{argv[0]}: {exc}", exit_code=1)

    # -- filesystem ---------------------------------------------------------

    def _cmd_mkdir(self, args: list[str], stdin: Path | None) -> CommandResult:
        for arg in _operands(args):
            Path(arg).mkdir(parents=True, exist_ok=True)
        return _ok()

    def _cmd_rm(self, args: list[str], stdin: Path | None) -> CommandResult:
        for arg in _operands(args):
            path = Path(arg)
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink(missing_ok=True)
        return _ok()

    def _cmd_cp(self, args: list[str], stdin: Path | None) -> CommandResult:
        source, destination = _operands(args)
        shutil.copyfile(source, destination)
        return _ok()

    def _cmd_mv(self, args: list[str], stdin: Path | None) -> CommandResult:
        source, destination = _operands(args)
        os.replace(source, destination)
        return _ok()

    def _cmd_ln(self, args: list[str], stdin: Path | None) -> CommandResult:
        target, link = _operands(args)
        link_path = Path(link)
        link_path.unlink(missing_ok=True)
        link_path.symlink_to(target)
        return _ok()

    def _cmd_test(self, args: list[str], stdin: Path | None) -> CommandResult:
        flag, path = args
        checks = {"-d": Path.is_dir, "-e": Path.exists, "-f": Path.is_file}
        exists = checks[flag](Path(path))
        return _ok() if exists else CommandResult(output="", exit_code=1)

    # -- DNS ----------------------------------------------------------------

    def _cmd_named_checkzone(self, args: list[str], stdin: Path | None) -> CommandResult:
        domain, zone_file = args
        content = Path(zone_file).read_text(encoding="utf-8")
        match = _SERIAL.search(content)
        if "SOA" not in content or match is None:
            return CommandResult(
                output=f"zone {domain}/IN: not loaded due to errors.", exit_code=1
            )
        return CommandResult(
            output=f"zone {domain}/IN: loaded serial {match.group(1)}\nOK\n", exit_code=0
        )

    # -- cron ---------------------------------------------------------------

    def _cmd_crontab(self, args: list[str], stdin: Path | None) -> CommandResult:
        _, user, operand = args
        if operand == "-l":
            if user not in self.crontabs:
                return CommandResult(output=f"no crontab for {user}\n", exit_code=1)
            return CommandResult(output=self.crontabs[user], exit_code=0)
        self.crontabs[user] = Path(operand).read_text(encoding="utf-8")
        return _ok()

    # -- FTP ----------------------------------------------------------------

    def _cmd_pure_pw(self, args: list[str], stdin: Path | None) -> CommandResult:
        action, username, *rest = args
        options = dict(zip(rest[::2], rest[1::2], strict=False))
        password = stdin.read_text(encoding="utf-8").splitlines()[0] if stdin else ""
        account = self.ftp_accounts.get(username)

        if action == "useradd":
            if account is not None:
                return CommandResult(output="Account already exists", exit_code=1)
            self.ftp_accounts[username] = {
                "home": options["-d"],
                "uid": options["-u"],
                "gid": options["-g"],
                "password": password,
            }
            return _ok()
        if account is None:
            return CommandResult(output=f"Unable to fetch info about user {username}", exit_code=1)
        if action == "userdel":
            del self.ftp_accounts[username]
        elif action == "usermod":
            account["home"] = options["-d"]
        elif action == "passwd":
            account["password"] = password
        return _ok()

    def _cmd_id(self, args: list[str], stdin: Path | None) -> CommandResult:
        flag, _user = args
        return CommandResult(output=f"{self.system_ids[flag]}\n", exit_code=0)


def _operands(args: list[str]) -> list[str]:
    return [arg for arg in args if not arg.startswith("-")]


def _ok() -> CommandResult:
    return CommandResult(output="", exit_code=0)


# ---------------------------------------------------------------------------
# Fake MySQL administrative adapter
# ---------------------------------------------------------------------------


class RecordingDatabaseManager:
    """DatabaseManager that records calls; methods listed in *failing* return False.

    *databases* and *users* seed objects already on the server; creating one
    of them raises like MySQL does without ``IF NOT EXISTS``.
    """

    def __init__(
        self,
        *,
        failing: set[str] | None = None,
        databases: set[str] | None = None,
        users: set[str] | None = None,
    ) -> None:
        self.failing = failing or set()
        self.calls: list[tuple[str, Any]] = []
        self.databases: set[str] = set(databases or ())
        self.users: set[str] = set(users or ())

    def _call(self, method: str, *args: Any) -> bool:
        self.calls.append((method, args))
        return method not in self.failing

    def create_database(self, database: Database) -> bool:
        ok = self._call("create_database", database.name)
        if database.name in self.databases:
            raise ResourceExistsError(f"Can't create database '{database.name}'; database exists")
        if ok:
            self.databases.add(database.name)
        return ok

    def delete_database(self, database: Database) -> bool:
        self.databases.discard(database.name)
        return self._call("delete_database", database.name)

    def create_user(self, user: DatabaseUser, password: str) -> bool:
        ok = self._call("create_user", user.username)
        if user.username in self.users:
            raise ResourceExistsError(f"Operation CREATE USER failed for '{user.username}'")
        if ok:
            self.users.add(user.username)
        return ok

    def delete_user(self, user: DatabaseUser) -> bool:
        self.users.discard(user.username)
        return self._call("delete_user", user.username)

    def grant_privileges(
        self, user: DatabaseUser, database: Database, privileges: list[str]
    ) -> bool:
        return self._call("grant_privileges", user.username, database.name, list(privileges))

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)


# ---------------------------------------------------------------------------
# Host layout and settings
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def host_root(tmp_path: Path) -> Path:
    """Temporary stand-in for the server's filesystem.

    Holds the sites root, nginx and PHP-FPM config dirs, fake PHP
    binaries, the BIND zones dir, and the panel data dir.
    """
    for sub in (
        "sites",
        "nginx/sites-available",
        "nginx/sites-enabled",
        "php/run",
        "bind/zones",
        "bin",
        "data",
        "tmp",
        "locks",
    ):
        (tmp_path / sub).mkdir(parents=True)
    for version in PHP_VERSIONS:
        (tmp_path / "php" / version / "fpm" / "pool.d").mkdir(parents=True)
        (tmp_path / "bin" / f"php{version}").write_text("#!/bin/sh\n")
    return tmp_path


def settings_for(root: Path) -> HostSettings:
    """HostSettings with every filesystem root inside *root*."""
    return HostSettings(
        panel=PanelConfig(
            data_dir=root / "data",
            sites_root=str(root / "sites"),
            system_user="hostctl",
            web_group="www-data",
        ),
        sandbox=SandboxConfig(
            sudo=["sudo", "-n"],
            timeout_seconds=5,
            audit_log=root / "audit.log",
            temp_dir=root / "tmp",
            lock_dir=root / "locks",
        ),
        nginx=NginxConfig(
            sites_available=str(root / "nginx" / "sites-available"),
            sites_enabled=str(root / "nginx" / "sites-enabled"),
        ),
        php=PhpConfig(
            versions=PHP_VERSIONS,
            binary_template=str(root / "bin" / "php{version}"),
            pool_dir_template=str(root / "php" / "{version}" / "fpm" / "pool.d"),
            socket_dir=str(root / "php" / "run"),
        ),
        bind=BindConfig(
            zones_dir=str(root / "bind" / "zones"),
            include_config=str(root / "bind" / "named.conf.local"),
        ),
    )


def config_toml(root: Path) -> str:
    """The same layout as :func:`settings_for`, as a hostctl.toml."""
    return f"""\
[panel]
data_dir = "{root / "data"}"
sites_root = "{root / "sites"}"
system_user = "hostctl"

[sandbox]
timeout_seconds = 5
audit_log = "{root / "audit.log"}"
temp_dir = "{root / "tmp"}"
lock_dir = "{root / "locks"}"

[nginx]
sites_available = "{root / "nginx" / "sites-available"}"
sites_enabled = "{root / "nginx" / "sites-enabled"}"

[php]
versions = ["8.2", "8.3"]
binary_template = "{root / "bin" / "php{version}"}"
pool_dir_template = "{root / "php" / "{version}" / "fpm" / "pool.d"}"
socket_dir = "{root / "php" / "run"}"

[bind]
zones_dir = "{root / "bind" / "zones"}"
include_config = "{root / "bind" / "named.conf.local"}"
"""


@pytest.fixture
def settings(host_root: Path) -> HostSettings:
    return settings_for(host_root)


@pytest.fixture
def sandbox(settings: HostSettings) -> ScriptedSandbox:
    cfg = settings.sandbox
    return ScriptedSandbox(
        sudo=cfg.sudo,
        timeout=cfg.timeout_seconds,
        audit=AuditLog(cfg.audit_log),
        temp_dir=cfg.temp_dir,
    )


@pytest.fixture
def db_manager() -> RecordingDatabaseManager:
    return RecordingDatabaseManager()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Any]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path / "store" / "hostctl.db")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def panel(
    settings: HostSettings,
    sandbox: ScriptedSandbox,
    db_manager: RecordingDatabaseManager,
) -> Iterator[Panel]:
    """Fully wired panel over the temp host with a scripted sandbox."""
    p = Panel(settings, sandbox=sandbox, database_manager=db_manager)
    try:
        yield p
    finally:
        p.close()


@pytest.fixture
def cli_host(
    host_root: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Iterator[tuple[ScriptedSandbox, RecordingDatabaseManager]]:
    """Point the real CLI at the temp host.

    Writes a hostctl.toml into the temp root, runs from there, and makes
    every Panel the CLI builds share one scripted sandbox and one fake
    MySQL adapter, so state carries over between invocations.
    """
    from hostctl.infrastructure import panel as panel_module

    (host_root / "hostctl.toml").write_text(config_toml(host_root), encoding="utf-8")
    monkeypatch.chdir(host_root)
    for name in list(os.environ):
        if name.startswith("HOSTCTL_"):
            monkeypatch.delenv(name)

    scripted = ScriptedSandbox(sudo=["sudo", "-n"], timeout=5, temp_dir=host_root / "tmp")
    manager = RecordingDatabaseManager()
    monkeypatch.setattr(
        panel_module.CommandSandbox, "from_settings", classmethod(lambda cls, _s: scripted)
    )
    monkeypatch.setattr(panel_module, "MysqlDatabaseAdapter", lambda **_kw: manager)
    yield scripted, manager


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def make_user(panel: Panel, username: str = "alice") -> User:
    """Insert a panel user directly through the store."""
    return panel.users.create(
        User(username=username, email=f"{username}@example.com", password_hash="x")
    )


def make_site(panel: Panel, user: User, domain: str = "example.com") -> Site:
    """Provision a site through CreateSiteService."""
    from hostctl.services.site import CreateSiteService

    assert user.id is not None
    return CreateSiteService.from_panel(panel).execute(user.id, domain)
