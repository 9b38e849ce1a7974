"""Tests for the ``site`` command group, end to end over the temp host."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from hostctl.cli import cli
from tests.conftest import RecordingDatabaseManager, ScriptedSandbox

CliHost = tuple[ScriptedSandbox, RecordingDatabaseManager]


@pytest.fixture
def owner(cli_runner: CliRunner, cli_host: CliHost) -> int:
    result = cli_runner.invoke(
        cli, ["-q", "user", "create", "alice", "alice@example.com", "--password", "s3cret-pw"]
    )
    assert result.exit_code == 0, result.output
    return 1


class TestSiteCreateCommand:
    def test_create(self, cli_runner: CliRunner, host_root: Path, owner: int) -> None:
        result = cli_runner.invoke(cli, ["--json", "site", "create", str(owner), "Example.COM"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)["data"]
        assert data["domain"] == "example.com"
        assert data["php_version"] == "8.2"
        assert data["ssl_enabled"] is False
        assert data["document_root"] == str(
            host_root / "sites" / "alice" / "example.com" / "public_html"
        )
        assert (host_root / "nginx" / "sites-available" / "example.com.conf").is_file()
        assert (host_root / "php" / "8.2" / "fpm" / "pool.d" / "example.com.conf").is_file()

    def test_create_with_options(self, cli_runner: CliRunner, owner: int) -> None:
        result = cli_runner.invoke(
            cli,
            ["--json", "site", "create", str(owner), "shop.example.com", "--php", "8.3", "--ssl"],
        )
        data = json.loads(result.stdout)["data"]
        assert data["php_version"] == "8.3"
        assert data["ssl_enabled"] is True

    def test_unknown_php_version(self, cli_runner: CliRunner, owner: int) -> None:
        result = cli_runner.invoke(cli, ["site", "create", str(owner), "a.com", "--php", "5.6"])
        assert result.exit_code == 1
        listing = cli_runner.invoke(cli, ["site", "list"])
        assert "No sites." in listing.stdout

    def test_failed_config_check_rolls_back(
        self, cli_runner: CliRunner, cli_host: CliHost, host_root: Path, owner: int
    ) -> None:
        sandbox, _ = cli_host
        sandbox.fail_on("nginx", "-t", output="nginx: [emerg] unexpected end of file")
        result = cli_runner.invoke(cli, ["-v", "site", "create", str(owner), "example.com"])
        assert result.exit_code == 1
        assert "Failed to create site infrastructure" in result.output
        assert "undo create PHP-FPM pool" in result.output
        assert not (host_root / "sites" / "alice" / "example.com").exists()
        assert not (host_root / "php" / "8.2" / "fpm" / "pool.d" / "example.com.conf").exists()

        sandbox.clear_failures()
        retry = cli_runner.invoke(cli, ["-q", "site", "create", str(owner), "example.com"])
        assert retry.exit_code == 0
        assert retry.stdout.strip().isdigit()


class TestSiteDeleteCommand:
    def test_delete(self, cli_runner: CliRunner, host_root: Path, owner: int) -> None:
        assert cli_runner.invoke(cli, ["site", "create", str(owner), "example.com"]).exit_code == 0
        result = cli_runner.invoke(cli, ["site", "delete", "1"])
        assert result.exit_code == 0, result.output
        assert not (host_root / "nginx" / "sites-available" / "example.com.conf").exists()
        assert not (host_root / "sites" / "alice" / "example.com").exists()

    def test_delete_with_zone_refused(self, cli_runner: CliRunner, owner: int) -> None:
        assert cli_runner.invoke(cli, ["site", "create", str(owner), "example.com"]).exit_code == 0
        assert cli_runner.invoke(cli, ["dns", "create", "1", "example.com"]).exit_code == 0
        result = cli_runner.invoke(cli, ["site", "delete", "1"])
        assert result.exit_code == 1
        assert "delete them first" in result.output


class TestSiteListCommand:
    def test_table_columns(self, cli_runner: CliRunner, owner: int) -> None:
        cli_runner.invoke(cli, ["site", "create", str(owner), "example.com"])
        result = cli_runner.invoke(cli, ["site", "list", "--user", str(owner)])
        assert result.exit_code == 0
        assert "example.com" in result.stdout
        assert "Php Version" in result.stdout
        assert result.stdout.rstrip().endswith("1 sites")

    def test_filter_other_user(self, cli_runner: CliRunner, owner: int) -> None:
        cli_runner.invoke(cli, ["site", "create", str(owner), "example.com"])
        result = cli_runner.invoke(cli, ["--json", "site", "list", "--user", "2"])
        assert json.loads(result.stdout)["data"]["count"] == 0
